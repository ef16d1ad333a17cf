from freight_rate.integrations.routing.distance_matrix_client import DistanceMatrixClient

__all__ = ["DistanceMatrixClient"]
