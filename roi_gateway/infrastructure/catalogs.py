"""Catalog store - price list, benefits and plan rules loaded once from JSON files"""

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError

from roi_gateway.config import Settings, settings
from roi_gateway.domain.exceptions import CatalogLoadError
from roi_gateway.domain.models import Catalogs, PlanRule


class PricebookEntry(BaseModel):
    name: Optional[str] = None
    list_price: float = Field(..., ge=0)


class PricebookFile(BaseModel):
    products: Dict[str, PricebookEntry]


class BenefitEntry(BaseModel):
    bullets: List[str]


class BenefitsFile(BaseModel):
    benefits: Dict[str, BenefitEntry]


class PlanEntry(BaseModel):
    name: Optional[str] = None
    per_seat: float = Field(..., ge=0)
    includes: List[str]


class PlanRulesFile(BaseModel):
    plans: Dict[str, PlanEntry]


FileModel = TypeVar("FileModel", bound=BaseModel)


def _read_catalog(path: Path, model: Type[FileModel]) -> FileModel:
    """Read and validate one catalog file, raising CatalogLoadError on any problem"""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise CatalogLoadError(f"Catalog file unreadable: {path} ({e})") from e
    except json.JSONDecodeError as e:
        raise CatalogLoadError(f"Catalog file is not valid JSON: {path} ({e})") from e

    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise CatalogLoadError(f"Catalog file has unexpected shape: {path} ({e.error_count()} errors)") from e


class CatalogStore:
    """
    Loads the three static catalogs on first use and keeps them for the process lifetime.

    Concurrent first calls may each read the files; they produce identical results.
    """

    def __init__(self, pricebook_path: str, benefits_path: str, plan_rules_path: str):
        self.pricebook_path = Path(pricebook_path)
        self.benefits_path = Path(benefits_path)
        self.plan_rules_path = Path(plan_rules_path)
        self._catalogs: Optional[Catalogs] = None

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "CatalogStore":
        config = config or settings
        return cls(config.pricebook_path, config.benefits_path, config.plan_rules_path)

    def load(self) -> Catalogs:
        """
        Return (prices, benefits, plans), reading storage only on the first call.

        Raises:
            CatalogLoadError: If any catalog is missing or malformed
        """
        if self._catalogs is not None:
            return self._catalogs

        pricebook = _read_catalog(self.pricebook_path, PricebookFile)
        benefits = _read_catalog(self.benefits_path, BenefitsFile)
        plan_rules = _read_catalog(self.plan_rules_path, PlanRulesFile)

        catalogs = Catalogs(
            prices=MappingProxyType(
                {key: entry.list_price for key, entry in pricebook.products.items()}
            ),
            benefits=MappingProxyType(
                {key: tuple(entry.bullets) for key, entry in benefits.benefits.items()}
            ),
            plans=MappingProxyType(
                {
                    name: PlanRule(name=name, per_seat=entry.per_seat, includes=tuple(entry.includes))
                    for name, entry in plan_rules.plans.items()
                }
            ),
        )

        logging.info(
            "Catalogs loaded",
            extra={
                "products": len(catalogs.prices),
                "benefits": len(catalogs.benefits),
                "plans": len(catalogs.plans),
            },
        )
        self._catalogs = catalogs
        return catalogs
