"""
Abbreviation Expander

Finds abbreviations in free-form text and predicts what each one stands for,
from counts of which words were seen at which distance from the abbreviation
when it meant a given expansion.

The package is split into small pieces:
- Tokenization that reproduces the input text exactly
- Context windows around each abbreviation
- Distance-weighted confidence scoring of every registered expansion
- Text reconstruction (expand in place, or explain in parentheses)
- Storage of the co-occurrence counts (in-memory or SQLite)

Example Usage:
    from abbrex import Engine

    eng = Engine()
    eng.add_example("An abbr is a shortened form of a word", 1, "abbreviation")
    print(eng.expand("An abbr is a shortened form of a word"))
    # An abbreviation is a shortened form of a word
"""

# src/abbrex/__init__.py
from .config import EngineConfig
from .engine import Engine
from .models import Abbreviation, Context, Expansion, TokenizedText
from .tokenizer import Tokenizer, compose, tokenize

__version__ = "1.0.0"
__all__ = [
    "Engine",
    "EngineConfig",
    "Abbreviation",
    "Context",
    "Expansion",
    "TokenizedText",
    "Tokenizer",
    "compose",
    "tokenize",
]
