"""
Type Registry: bidirectional mapping between builder node-type tags and
engine node-type identifiers.

Both directions are total. An unknown tag exports as the default engine type,
an unknown engine type imports as the default tag, so a mapping gap never
aborts a conversion.
"""
import logging
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional

from canvaslib.types import NodeTypeInfo
from ..errors import ConversionAmbiguity, ConversionReport

logger = logging.getLogger(__name__)

DEFAULT_ENGINE_TYPE = "n8n-nodes-base.set"
DEFAULT_TAG = "action"

# Builder palette, in display order
DEFAULT_NODE_TYPES = (
    NodeTypeInfo(tag="webhook", display_name="Webhook", engine_type="n8n-nodes-base.webhook"),
    NodeTypeInfo(tag="database", display_name="Database", engine_type="n8n-nodes-base.postgres"),
    NodeTypeInfo(tag="email", display_name="Email", engine_type="n8n-nodes-base.emailSend"),
    NodeTypeInfo(tag="file", display_name="File", engine_type="n8n-nodes-base.readBinaryFile"),
    NodeTypeInfo(tag="schedule", display_name="Schedule", engine_type="n8n-nodes-base.scheduleTrigger"),
    NodeTypeInfo(tag="action", display_name="Action", engine_type="n8n-nodes-base.set"),
)


def engine_local_name(engine_type: str) -> str:
    """'n8n-nodes-base.emailSend' -> 'emailSend'; the last dotted segment."""
    return engine_type.rsplit(".", 1)[-1]


class TypeRegistry:
    """
    Immutable tag <-> engine type table.

    Construct once and pass by reference; the lookup tables are read-only
    views and no method mutates the instance.
    """

    __slots__ = ("_types", "_forward", "_reverse", "_default_engine_type", "_default_tag")

    def __init__(
        self,
        node_types: Iterable[NodeTypeInfo] = DEFAULT_NODE_TYPES,
        default_engine_type: str = DEFAULT_ENGINE_TYPE,
        default_tag: str = DEFAULT_TAG
    ):
        """
        Initialize registry.

        Args:
            node_types: Palette entries; order decides substring-match priority
            default_engine_type: Engine type for unmapped tags
            default_tag: Tag for unmapped engine types
        """
        types = tuple(node_types)
        forward = {}
        reverse = {}
        for info in types:
            forward.setdefault(info.tag, info.engine_type)
            reverse.setdefault(info.engine_type, info.tag)

        self._types = types
        self._forward: Mapping[str, str] = MappingProxyType(forward)
        self._reverse: Mapping[str, str] = MappingProxyType(reverse)
        self._default_engine_type = default_engine_type
        self._default_tag = default_tag

    def __setattr__(self, name, value):
        if hasattr(self, "_default_tag"):
            raise AttributeError("TypeRegistry is immutable")
        object.__setattr__(self, name, value)

    @property
    def default_engine_type(self) -> str:
        return self._default_engine_type

    @property
    def default_tag(self) -> str:
        return self._default_tag

    def node_types(self) -> List[NodeTypeInfo]:
        """Palette entries in display order."""
        return list(self._types)

    def node_type(self, tag: str) -> Optional[NodeTypeInfo]:
        for info in self._types:
            if info.tag == tag:
                return info
        return None

    def display_name(self, tag: str) -> str:
        """Default display name for a new node of this tag."""
        info = self.node_type(tag)
        return info.display_name if info else tag.replace("-", " ").title()

    def to_engine_type(self, tag: str, report: Optional[ConversionReport] = None) -> str:
        """
        Map a builder tag to an engine type id.

        Args:
            tag: Internal node-type tag
            report: Optional report that records the fallback

        Returns:
            Mapped engine type, or the default engine type
        """
        engine_type = self._forward.get(tag)
        if engine_type is not None:
            return engine_type

        issue = ConversionAmbiguity(
            f"Unmapped node type '{tag}', exporting as '{self._default_engine_type}'"
        )
        logger.warning(str(issue))
        if report is not None:
            report.add_ambiguity(issue)
        return self._default_engine_type

    def to_internal_type(self, engine_type: str, report: Optional[ConversionReport] = None) -> str:
        """
        Map an engine type id back to a builder tag.

        Exact table match first, then the first known engine type whose local
        name occurs inside ``engine_type``, then the default tag.

        Args:
            engine_type: Engine node type identifier
            report: Optional report that records fallbacks

        Returns:
            Builder tag
        """
        tag = self._reverse.get(engine_type)
        if tag is not None:
            return tag

        candidates = [
            (known, known_tag) for known, known_tag in self._reverse.items()
            if engine_local_name(known) and engine_local_name(known) in (engine_type or "")
        ]

        if candidates:
            known, tag = candidates[0]
            message = f"Engine type '{engine_type}' matched '{known}' by substring"
            if len(candidates) > 1:
                # First match in table order wins; flagged, not resolved
                others = ", ".join(k for k, _ in candidates[1:])
                message += f" (also matches: {others})"
            issue = ConversionAmbiguity(message)
        else:
            tag = self._default_tag
            issue = ConversionAmbiguity(
                f"Unknown engine type '{engine_type}', importing as '{tag}'"
            )

        logger.warning(str(issue))
        if report is not None:
            report.add_ambiguity(issue)
        return tag
