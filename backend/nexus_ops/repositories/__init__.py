from nexus_ops.repositories.suggestion_repository import SuggestionRepository

__all__ = ["SuggestionRepository"]
