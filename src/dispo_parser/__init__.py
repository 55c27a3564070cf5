"""dispo-parser — Turn TMS CL View + Shipper Site exports into dispo job rows."""

__version__ = "0.3.0"
