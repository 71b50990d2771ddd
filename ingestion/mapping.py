"""
Declarative mappings: which loader feeds which transform into which collection
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Union
from ingestion.base import Loader
from ingestion.transformers.base import Transform
from core.exceptions import ConfigurationError
import logging

logger = logging.getLogger(__name__)

LoaderFactory = Callable[[], Loader]


@dataclass(frozen=True)
class MappingPolicy:
    """
    Per-mapping write policy.

    None means "inherit the pipeline option". dry_run can only force a
    preview on; a dry-run pipeline never writes regardless of the mapping.
    rate_limit caps page fetches per second for this mapping.
    """
    skip_existing: Optional[bool] = None
    dry_run: Optional[bool] = None
    rate_limit: Optional[float] = None

    def resolve_skip_existing(self, default: bool) -> bool:
        return default if self.skip_existing is None else self.skip_existing

    def resolve_dry_run(self, default: bool) -> bool:
        return default or bool(self.dry_run)


@dataclass(frozen=True)
class Mapping:
    """
    Binding of a loader, a transform, a target collection and a policy.

    `loader` is either a Loader instance or a zero-argument factory that
    builds one; a factory is invoked when the mapping starts running, so a
    failing constructor fails only that mapping.
    """
    id: str
    collection: str
    loader: Union[Loader, LoaderFactory]
    transform: Transform
    policy: MappingPolicy = field(default_factory=MappingPolicy)
    description: str = ""

    def __post_init__(self):
        if not self.id or not self.id.strip():
            raise ConfigurationError("Mapping id cannot be empty")
        if not self.collection or not self.collection.strip():
            raise ConfigurationError(
                "Mapping collection cannot be empty",
                context={"mapping_id": self.id}
            )
        if not callable(self.transform):
            raise ConfigurationError(
                "Mapping transform must be callable",
                context={"mapping_id": self.id}
            )
        if not isinstance(self.loader, Loader) and not callable(self.loader):
            raise ConfigurationError(
                "Mapping loader must be a Loader or a loader factory",
                context={"mapping_id": self.id}
            )
        if self.policy.rate_limit is not None and self.policy.rate_limit <= 0:
            raise ConfigurationError(
                "rate_limit must be positive",
                context={"mapping_id": self.id, "rate_limit": self.policy.rate_limit}
            )

    def create_loader(self) -> Loader:
        """Loader for this run, rewound to its initial cursor"""
        loader = self.loader if isinstance(self.loader, Loader) else self.loader()
        if not isinstance(loader, Loader):
            raise TypeError(f"Loader factory for {self.id} returned {type(loader).__name__}")
        loader.reset()
        return loader


class MappingRegistry:
    """
    Mappings available to a deployment, keyed by mapping id.

    Mappings whose loader cannot run here (missing export file, absent
    credentials) are registered as unavailable with a reason; selecting
    one explicitly is a ConfigurationError.
    """

    def __init__(self, mappings: Optional[Iterable[Mapping]] = None):
        self._mappings: Dict[str, Mapping] = {}
        self._unavailable: Dict[str, str] = {}
        for mapping in mappings or []:
            self.register(mapping)

    def register(self, mapping: Mapping) -> Mapping:
        if mapping.id in self._mappings or mapping.id in self._unavailable:
            raise ConfigurationError(
                f"Duplicate mapping id: {mapping.id}",
                context={"mapping_id": mapping.id}
            )
        self._mappings[mapping.id] = mapping
        return mapping

    def register_unavailable(self, mapping_id: str, reason: str):
        if mapping_id in self._mappings or mapping_id in self._unavailable:
            raise ConfigurationError(
                f"Duplicate mapping id: {mapping_id}",
                context={"mapping_id": mapping_id}
            )
        logger.debug(f"Mapping {mapping_id} unavailable: {reason}")
        self._unavailable[mapping_id] = reason

    @property
    def ids(self) -> List[str]:
        return list(self._mappings)

    @property
    def unavailable(self) -> Dict[str, str]:
        return dict(self._unavailable)

    def get(self, mapping_id: str) -> Mapping:
        if mapping_id in self._mappings:
            return self._mappings[mapping_id]
        if mapping_id in self._unavailable:
            raise ConfigurationError(
                f"Mapping {mapping_id} is not available: {self._unavailable[mapping_id]}",
                context={"mapping_id": mapping_id}
            )
        raise ConfigurationError(
            f"No mapping found with id: {mapping_id}",
            context={"mapping_id": mapping_id, "available": ", ".join(self.ids)}
        )

    def select(self, mapping_ids: Optional[Iterable[str]] = None) -> List[Mapping]:
        """
        Mappings to run, in registration order.

        Raises:
            ConfigurationError: If any requested id is unknown or unavailable
        """
        if not mapping_ids:
            for mapping_id, reason in self._unavailable.items():
                logger.warning(f"Skipping unavailable mapping {mapping_id}: {reason}")
            return list(self._mappings.values())

        requested = list(dict.fromkeys(mapping_ids))
        selected = [self.get(mapping_id) for mapping_id in requested]
        order = {mapping_id: index for index, mapping_id in enumerate(self._mappings)}
        return sorted(selected, key=lambda m: order[m.id])

    def __len__(self) -> int:
        return len(self._mappings)

    def __contains__(self, mapping_id: str) -> bool:
        return mapping_id in self._mappings
