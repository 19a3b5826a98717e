"""Read-only lookup of learning content structure.

The progress model knows nothing about which topics make up a section.  The
tracking service asks a ``ContentCatalog`` for a section's topic count and for
the section that owns a topic whenever it refreshes section progress.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any

logger = logging.getLogger(__name__)


class ContentCatalog:
    """Section -> topics table with the reverse topic -> section index.

    Usage::

        catalog = ContentCatalog({"intro": ["intro-1", "intro-2"]})
        catalog.total_topics("intro")         # 2
        catalog.section_for_topic("intro-2")  # "intro"
    """

    def __init__(self, sections: Mapping[str, Iterable[str]] | None = None) -> None:
        self._sections: dict[str, tuple[str, ...]] = {}
        self._owner: dict[str, str] = {}
        for section_id, topic_ids in (sections or {}).items():
            topics = tuple(topic_ids)
            self._sections[section_id] = topics
            for topic_id in topics:
                if topic_id in self._owner and self._owner[topic_id] != section_id:
                    logger.warning(
                        "Topic %r listed under both %r and %r; keeping %r",
                        topic_id, self._owner[topic_id], section_id, self._owner[topic_id],
                    )
                    continue
                self._owner[topic_id] = section_id

    def sections(self) -> list[str]:
        """Section ids in catalog order."""
        return list(self._sections)

    def topics(self, section_id: str) -> tuple[str, ...]:
        return self._sections.get(section_id, ())

    def total_topics(self, section_id: str) -> int:
        """Number of topics in *section_id*; 0 for unknown sections."""
        return len(self._sections.get(section_id, ()))

    def section_for_topic(self, topic_id: str) -> str | None:
        return self._owner.get(topic_id)

    def __contains__(self, section_id: str) -> bool:
        return section_id in self._sections

    def __len__(self) -> int:
        return len(self._sections)

    # -- construction helpers -------------------------------------------------

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ContentCatalog:
        """Build from ``{"sections": {section_id: [topic_id, ...]}}`` or the bare mapping."""
        sections = data.get("sections", data)
        if not isinstance(sections, Mapping):
            raise ValueError("catalog sections must be a mapping of section id to topic ids")
        return cls({str(k): [str(t) for t in v] for k, v in sections.items()})

    @classmethod
    def from_json(cls, json_str: str) -> ContentCatalog:
        return cls.from_dict(json.loads(json_str))

    def to_dict(self) -> dict[str, Any]:
        return {"sections": {k: list(v) for k, v in self._sections.items()}}
