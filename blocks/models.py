from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from .normalizer import resolve_block_type
from .schema import BlockKind, BlockSchemaRegistry


@dataclass
class Block:
    """A stored block whose kind is registered."""
    kind: BlockKind
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def block_type(self) -> str:
        return self.kind.slug

    @property
    def tenant_code(self) -> str:
        return self.kind.tenant_code

    def get(self, name: str, default: Any = None) -> Any:
        return self.data.get(name, default)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.data)


@dataclass
class UnknownBlock:
    """
    Opaque variant for kinds that are not registered (or missing entirely).
    Keeps the raw mapping so it is written back untouched.
    """
    raw: Dict[str, Any] = field(default_factory=dict)
    block_type: Optional[str] = None

    @property
    def tenant_code(self) -> str:
        if self.block_type and "." in self.block_type:
            return self.block_type.split(".", 1)[0]
        return ""

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.raw)


AnyBlock = Union[Block, UnknownBlock]


def parse_block(raw: Dict[str, Any], registry: BlockSchemaRegistry) -> AnyBlock:
    block_type = resolve_block_type(raw)
    kind = registry.get_kind(block_type) if block_type else None
    if kind is None:
        return UnknownBlock(raw=dict(raw), block_type=block_type)
    return Block(kind=kind, data=dict(raw))
