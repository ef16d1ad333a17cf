from freight_rate.integrations.freightcom.quote_client import FreightcomClient

__all__ = ["FreightcomClient"]
