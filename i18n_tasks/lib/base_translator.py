from abc import ABC, abstractmethod
from typing import List, Sequence


class Translator(ABC):
    """A translation backend: translates an ordered batch of strings.

    Implementations may call a network service, a local model or a dictionary.
    The batch may contain opaque interpolation tokens, which must be returned
    unchanged.
    """

    name = "base"

    @abstractmethod
    def translate(self, batch: Sequence[str], from_locale: str, to_locale: str) -> List[str]:
        """Translate a batch of strings.

        Args:
            batch: Source strings, in order
            from_locale: Source locale code (e.g. 'en')
            to_locale: Destination locale code (e.g. 'ru')

        Returns:
            list: Translated strings, same length and order as ``batch``
        """
        pass

    def __repr__(self):
        return f"{type(self).__name__}()"
