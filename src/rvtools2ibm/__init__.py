"""rvtools2ibm: RVTools-based migration assessment for IBM Cloud."""

__version__ = "1.0.0"
