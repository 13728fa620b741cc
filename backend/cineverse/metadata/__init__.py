from .chain import ProviderChain
from .resolver import Deadline, MovieResolver

__all__ = ["Deadline", "MovieResolver", "ProviderChain"]
