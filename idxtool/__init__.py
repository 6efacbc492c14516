"""Search indices and manage their rules, synonyms, settings and configurations."""

__version__ = "0.1.0"

__all__ = ["client", "synonyms", "index_config", "settings", "rules", "synonym_commands"]