#!/usr/bin/env python3
"""
Base classes for format handlers.

FormatHandler is the abstract base class that all format-specific handlers
must implement. TranslationEntry is the universal data structure for
translatable content across all formats, and Artifact is one produced
output file.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any, Optional


@dataclass
class TranslationEntry:
    """
    Universal translation entry that works across all formats.

    Attributes:
        id: Unique identifier (NLS key, ISL message name)
        text: Source text
        context: Optional developer comment for translator guidance
        metadata: Format-specific data (raw key object, ISL section, etc.)
    """
    id: str
    text: str
    context: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Ensure id is string."""
        self.id = str(self.id)


@dataclass
class Artifact:
    """
    One produced output file.

    Attributes:
        path: Output path, forward-slash separated, relative to the output root
        contents: Encoded file contents
    """
    path: str
    contents: bytes

    def __post_init__(self):
        self.path = str(PurePosixPath(self.path.replace('\\', '/')))

    def text(self, encoding: str = 'utf-8') -> str:
        return self.contents.decode(encoding)


class FormatHandler(ABC):
    """
    Abstract base class for format-specific handlers.

    Each handler converts between its file format and TranslationEntry
    objects (parse) and renders translated output back into the format
    (reconstruct).
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name."""
        pass

    @property
    @abstractmethod
    def file_extensions(self) -> list[str]:
        """List of file extensions this handler supports (without dot)."""
        pass

    @abstractmethod
    def parse(self, content: str) -> list[TranslationEntry]:
        """
        Parse format-specific content into translation entries.

        Args:
            content: Raw file content as string

        Returns:
            List of TranslationEntry objects
        """
        pass

    @abstractmethod
    def reconstruct(
        self,
        entries: list[TranslationEntry],
        translations: dict[str, str],
    ) -> str:
        """
        Reconstruct format-specific output from entries and translations.

        Args:
            entries: Original TranslationEntry objects (with metadata)
            translations: Map of entry_id -> translated_text

        Returns:
            Reconstructed file content as string
        """
        pass

    def validate_content(self, content: str) -> list[str]:
        """
        Validate that content is properly formatted for this handler.

        Returns:
            List of validation error messages (empty if valid)
        """
        return []


class FormatRegistry:
    """Registry of available format handlers."""

    _handlers: dict[str, type[FormatHandler]] = {}
    _extension_map: dict[str, str] = {}  # extension -> handler name

    @classmethod
    def register(cls, handler_class: type[FormatHandler]) -> None:
        """Register a format handler class."""
        # Create instance to get properties
        handler = handler_class()
        cls._handlers[handler.name.lower()] = handler_class
        for ext in handler.file_extensions:
            cls._extension_map[ext.lower()] = handler.name.lower()

    @classmethod
    def get_handler(cls, name: str) -> FormatHandler:
        """Get handler instance by name."""
        name_lower = name.lower()
        if name_lower not in cls._handlers:
            available = ', '.join(cls._handlers.keys())
            raise ValueError(f"Unknown format: {name}. Available: {available}")
        return cls._handlers[name_lower]()

    @classmethod
    def get_handler_for_extension(cls, extension: str) -> FormatHandler:
        """Get handler instance by file extension."""
        ext = extension.lower().lstrip('.')
        if ext not in cls._extension_map:
            available = ', '.join(cls._extension_map.keys())
            raise ValueError(f"Unknown extension: .{ext}. Supported: {available}")
        return cls.get_handler(cls._extension_map[ext])

    @classmethod
    def supports(cls, filepath: str) -> bool:
        """Whether a handler is registered for the file's extension."""
        return PurePosixPath(filepath.replace('\\', '/')).suffix.lower().lstrip('.') in cls._extension_map

    @classmethod
    def detect_format(cls, filepath: str) -> FormatHandler:
        """
        Pick the handler for a file from its extension.

        Args:
            filepath: Path to the file

        Returns:
            Appropriate FormatHandler instance
        """
        ext = PurePosixPath(filepath.replace('\\', '/')).suffix
        return cls.get_handler_for_extension(ext)
