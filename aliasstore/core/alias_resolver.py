"""
Rule-based alias resolver.

AliasResolver is a ready-made resolver for factories: direct alias mappings
plus regular expression patterns whose capture groups are substituted into a
location template.
"""

import logging
import os
import re
from pathlib import Path
from typing import Callable, Dict, Optional, Pattern, Union

logger = logging.getLogger(__name__)


class AliasResolver:
    """
    Resolve aliases from registered mappings and patterns.

    Direct mappings are checked first, then patterns in registration order.
    Unmatched aliases go to ``fallback`` when given, else resolve to None
    (which an aliased handle reports as an invalid alias).
    """

    def __init__(self, root: Optional[Union[str, Path]] = None,
                 fallback: Optional[Callable[[str], Optional[str]]] = None):
        self.root = Path(root) if root is not None else None
        self.fallback = fallback
        self.key_patterns: Dict[Pattern, str] = {}
        self.key_mappings: Dict[str, str] = {}

    def register_mapping(self, alias: str, location: Union[str, os.PathLike]) -> None:
        """
        Register a direct mapping from an alias to a location.

        Args:
            alias: The alias
            location: The location to map to
        """
        self.key_mappings[alias] = os.fspath(location)

    def register_pattern(self, pattern: str, template: str) -> None:
        """
        Register a pattern for alias resolution.

        Args:
            pattern: A regular expression matched against the whole alias
            template: A location template; $1..$n are replaced by capture groups
        """
        self.key_patterns[re.compile(pattern)] = template

    def resolve(self, alias: str) -> Optional[str]:
        """
        Resolve an alias to a location.

        Args:
            alias: The alias

        Returns:
            The location, or None if the alias cannot be resolved
        """
        location = self.key_mappings.get(alias)

        if location is None:
            for pattern, template in self.key_patterns.items():
                match = pattern.fullmatch(alias)
                if match:
                    location = template
                    # Highest group first so $1 does not clobber $10
                    for i in range(len(match.groups()), 0, -1):
                        location = location.replace(f"${i}", match.group(i) or "")
                    break

        if location is None:
            if self.fallback is None:
                logger.debug(f"No mapping or pattern for alias '{alias}'")
                return None
            location = self.fallback(alias)
            if location is None:
                return None

        if self.root is not None and not os.path.isabs(location):
            location = str(self.root / location)
        logger.debug(f"Resolved alias '{alias}' to {location}")
        return location

    def __call__(self, alias: str) -> Optional[str]:
        return self.resolve(alias)
