from indexer.loaders.sql_loader import IndexLoader, InsertOutcome

__all__ = ["IndexLoader", "InsertOutcome"]
