from .tmdb_client import HttpxTmdbClient

__all__ = ["HttpxTmdbClient"]
