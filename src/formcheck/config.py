"""Checker configuration.

CheckConfig is a frozen dataclass — immutable after creation, shared
safely between checkers and threads.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CheckConfig:
    """Checker configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = CheckConfig(max_form_size=4 * 1024 * 1024, default_locale="fr")
    """

    # Request bodies
    max_form_size: int = 32 * 1024 * 1024  # 32 MB

    # Uploaded files
    sniff_length: int = 512  # Bytes consulted by content sniffing

    # Rendering
    default_locale: str = "en"
