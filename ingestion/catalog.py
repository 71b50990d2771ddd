"""
Mapping declarations for the sources this deployment imports.

    zapier-apps        Zapier app directory (REST, next-link pagination)
    gs1-verbs          GS1 CBV business steps
    gs1-dispositions   GS1 CBV dispositions
    gs1-event-types    GS1 EPCIS event types
    onet-occupations   O*NET "Occupation Data.txt"
    onet-tasks         O*NET "Task Statements.txt"
    naics-industries   NAICS classification TSV
"""

import csv
from pathlib import Path
from typing import Optional

import httpx

from core.config import Settings, settings as default_settings
from ingestion.mapping import Mapping, MappingPolicy, MappingRegistry
from ingestion.loaders.api_loader import PaginatedAPILoader
from ingestion.loaders.csv_loader import CSVLoader
from ingestion.loaders.static_loader import StaticLoader
from ingestion.transformers.zapier import transform_zapier_app
from ingestion.transformers.gs1 import (
    transform_business_step,
    transform_disposition,
    transform_event_type,
)
from ingestion.transformers.onet import transform_occupation, transform_task
from ingestion.transformers.naics import transform_industry
from ingestion.vocabularies import BUSINESS_STEPS, DISPOSITIONS, EVENT_TYPES
import logging

logger = logging.getLogger(__name__)

ONET_DIR = "onet"
ONET_OCCUPATIONS_FILE = "Occupation Data.txt"
ONET_TASKS_FILE = "Task Statements.txt"
NAICS_FILE = "naics.tsv"


def build_registry(
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    data_dir: Optional[str] = None
) -> MappingRegistry:
    """
    Build the registry of every known mapping.

    File-backed mappings whose export file is missing are registered as
    unavailable. The HTTP client, when given, is shared by API loaders and
    stays owned by the caller.
    """
    settings = settings or default_settings
    data_root = Path(data_dir or settings.DATA_DIR)
    registry = MappingRegistry()

    registry.register(Mapping(
        id="zapier-apps",
        collection="Apps",
        loader=lambda: PaginatedAPILoader(
            source_name="zapier",
            api_url=settings.ZAPIER_API_URL,
            pagination="next_url",
            page_size=settings.ZAPIER_PAGE_SIZE,
            max_pages=settings.ZAPIER_MAX_PAGES,
            records_key="results",
            client=http_client
        ),
        transform=transform_zapier_app,
        description="Zapier app directory"
    ))

    registry.register(Mapping(
        id="gs1-verbs",
        collection="Verbs",
        loader=lambda: StaticLoader("gs1-cbv", BUSINESS_STEPS),
        transform=transform_business_step,
        description="GS1 CBV business steps"
    ))
    registry.register(Mapping(
        id="gs1-dispositions",
        collection="Dispositions",
        loader=lambda: StaticLoader("gs1-cbv", DISPOSITIONS),
        transform=transform_disposition,
        description="GS1 CBV dispositions"
    ))
    registry.register(Mapping(
        id="gs1-event-types",
        collection="EventTypes",
        loader=lambda: StaticLoader("gs1-epcis", EVENT_TYPES),
        transform=transform_event_type,
        description="GS1 EPCIS event types"
    ))

    _register_tsv(
        registry,
        mapping_id="onet-occupations",
        collection="Occupations",
        path=data_root / ONET_DIR / ONET_OCCUPATIONS_FILE,
        source_name="onet",
        transform=transform_occupation,
        description="O*NET occupations"
    )
    _register_tsv(
        registry,
        mapping_id="onet-tasks",
        collection="Tasks",
        path=data_root / ONET_DIR / ONET_TASKS_FILE,
        source_name="onet",
        transform=transform_task,
        description="O*NET task statements"
    )
    _register_tsv(
        registry,
        mapping_id="naics-industries",
        collection="Industries",
        path=data_root / NAICS_FILE,
        source_name="naics",
        transform=transform_industry,
        description="NAICS industries"
    )

    logger.debug(
        f"Registered {len(registry)} mapping(s), {len(registry.unavailable)} unavailable"
    )
    return registry


def _register_tsv(
    registry: MappingRegistry,
    mapping_id: str,
    collection: str,
    path: Path,
    source_name: str,
    transform,
    description: str,
    policy: Optional[MappingPolicy] = None
):
    if not path.exists():
        registry.register_unavailable(mapping_id, f"source file not found: {path}")
        return

    registry.register(Mapping(
        id=mapping_id,
        collection=collection,
        loader=lambda: CSVLoader(
            source_name=source_name,
            file_path=str(path),
            delimiter="\t",
            quoting=csv.QUOTE_NONE
        ),
        transform=transform,
        policy=policy or MappingPolicy(),
        description=description
    ))
