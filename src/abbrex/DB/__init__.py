from .api import ExpansionStore, ExpansionRef, make_store

__all__ = ["ExpansionStore", "ExpansionRef", "make_store"]
