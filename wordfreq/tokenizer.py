#!/usr/bin/env python3
"""
Tokenizer strategies
Built-in tokenizers, a name registry, and loading of user-provided
tokenizer classes from a module path or a Python file
"""

import os
import importlib
import importlib.util
import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Type

import regex

from wordfreq.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_TOKENIZER = "standard"

# Whitespace, punctuation and symbols (the Unicode counterpart of \p{Punct})
SEPARATORS = regex.compile(r"[\s\p{P}\p{S}]+")


class Tokenizer(ABC):
    """Splits a text record into an ordered list of tokens"""

    @abstractmethod
    def tokenize(self, text: str) -> List[str]:
        """
        Tokenize a single text record

        Args:
            text: Input text record

        Returns:
            Tokens in the order they appear in the text
        """

    def __call__(self, text: str) -> List[str]:
        return self.tokenize(text)


_REGISTRY: Dict[str, Type[Tokenizer]] = {}


def register_tokenizer(name: str) -> Callable[[Type[Tokenizer]], Type[Tokenizer]]:
    """Class decorator that makes a tokenizer selectable by name"""
    def decorator(cls):
        if name in _REGISTRY and _REGISTRY[name] is not cls:
            raise ConfigurationError(f"Tokenizer '{name}' is already registered")
        _REGISTRY[name] = cls
        return cls
    return decorator


def available_tokenizers() -> List[str]:
    """Names of all registered tokenizers"""
    return sorted(_REGISTRY)


@register_tokenizer("standard")
class StandardTokenizer(Tokenizer):
    """Splits on runs of whitespace, punctuation and symbols"""

    def tokenize(self, text):
        return [token for token in SEPARATORS.split(text) if token]


@register_tokenizer("whitespace")
class WhitespaceTokenizer(Tokenizer):
    """Splits on whitespace only, punctuation stays attached"""

    def tokenize(self, text):
        return text.split()


@register_tokenizer("lowercase")
class LowercaseTokenizer(StandardTokenizer):
    """Standard tokenization followed by case folding to lower case"""

    def tokenize(self, text):
        return [token.lower() for token in super().tokenize(text)]


def _load_attribute(identifier: str):
    """
    Resolve 'package.module:Name' or 'path/to/file.py:Name'

    Raises:
        ConfigurationError: If the module or attribute can't be loaded
    """
    module_ref, _, attr = identifier.rpartition(":")
    if not module_ref or not attr:
        raise ConfigurationError(
            f"Unknown tokenizer '{identifier}'. Use one of "
            f"{', '.join(available_tokenizers())}, 'module:Class' or 'file.py:Class'")

    if module_ref.endswith(".py"):
        if not os.path.exists(module_ref):
            raise ConfigurationError(f"Tokenizer file not found: {module_ref}")
        module_name = "user_tokenizer_" + os.path.splitext(os.path.basename(module_ref))[0]
        spec = importlib.util.spec_from_file_location(module_name, module_ref)
        if spec is None or spec.loader is None:
            raise ConfigurationError(f"Failed to load tokenizer file: {module_ref}")
        module = importlib.util.module_from_spec(spec)
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            raise ConfigurationError(f"Failed to load tokenizer file {module_ref}: {e}") from e
    else:
        try:
            module = importlib.import_module(module_ref)
        except Exception as e:
            raise ConfigurationError(f"Cannot import tokenizer module '{module_ref}': {e}") from e

    if not hasattr(module, attr):
        raise ConfigurationError(f"Module '{module_ref}' does not define '{attr}'")
    return getattr(module, attr)


def create_tokenizer(identifier: str = DEFAULT_TOKENIZER) -> Tokenizer:
    """
    Instantiate the tokenizer selected by configuration

    Called once when the job starts so a bad strategy fails the job before
    any record is read.

    Args:
        identifier: Registered name, 'package.module:Class' or 'file.py:Class'

    Returns:
        A ready tokenizer instance

    Raises:
        ConfigurationError: If the strategy can't be resolved or instantiated
    """
    identifier = (identifier or DEFAULT_TOKENIZER).strip()

    if identifier in _REGISTRY:
        factory = _REGISTRY[identifier]
    else:
        factory = _load_attribute(identifier)

    try:
        tokenizer = factory() if isinstance(factory, type) else factory
    except Exception as e:
        raise ConfigurationError(f"Cannot instantiate tokenizer '{identifier}': {e}") from e

    if not callable(getattr(tokenizer, "tokenize", None)):
        raise ConfigurationError(f"'{identifier}' does not provide a tokenize() method")

    logger.info(f"Using tokenizer '{identifier}' ({type(tokenizer).__name__})")
    return tokenizer
