from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence


class Bundler(ABC):
    name: str

    @abstractmethod
    async def bundle(self, packages: Sequence[str], *, basedir: Optional[str] = None) -> str:
        """Bundle `packages` and their transitive dependencies.

        Returns the bundle source. The bundle must expose a `require` function
        able to resolve every requested package specifier, e.g.
        `require=(function(){...})(...)`.
        """
