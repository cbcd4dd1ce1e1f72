from .tmdb import SORT_ORDERS, TMDBClient, UpstreamError, build_discover_params, tmdb_client

__all__ = ["SORT_ORDERS", "TMDBClient", "UpstreamError", "build_discover_params", "tmdb_client"]
