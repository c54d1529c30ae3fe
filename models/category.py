from dataclasses import dataclass

from config.defaults import BU_CATEGORIES


@dataclass(frozen=True)
class CategoryTag:
    value: str
    is_known: bool

    @property
    def is_custom(self) -> bool:
        return not self.is_known

    @property
    def label(self) -> str:
        return BU_CATEGORIES.get(self.value, self.value)
