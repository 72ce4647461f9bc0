from __future__ import annotations

import configparser
import json
import os
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from typing_extensions import Literal

from pydantic import BaseModel, Field

Direction = Literal["IN", "OUT"]


def _default_categories() -> Dict[str, str]:
    return {
        "Sales receipt": "IN",
        "Purchase": "OUT",
        "Shipping": "OUT",
        "Payroll": "OUT",
        "Card fees": "OUT",
        "Rent": "OUT",
        "Utilities": "OUT",
        "Tax": "OUT",
        "Other": "OUT",
    }


class CompanyConfig(BaseModel):
    name: str = "My Company"
    business_no: str = ""


class CurrencyConfig(BaseModel):
    code: str = "KRW"
    symbol: str = "₩"


class TaxConfig(BaseModel):
    vat_rate: float = 0.1


class LedgerConfig(BaseModel):
    categories: Dict[str, Direction] = Field(default_factory=_default_categories)
    default_category: str = "Sales receipt"

    def direction_for(self, category: str) -> Direction:
        """Unknown categories are treated as outflows."""
        return self.categories.get((category or "").strip(), "OUT")


class StockConfig(BaseModel):
    atomic_issue: Literal["auto", "off"] = "auto"


class ShippingConfig(BaseModel):
    # Sales channels whose orders never appear on the daily shipping list.
    hidden_customers: List[str] = Field(default_factory=list)


class BusinessConfig(BaseModel):
    company: CompanyConfig = Field(default_factory=CompanyConfig)
    currency: CurrencyConfig = Field(default_factory=CurrencyConfig)
    tax: TaxConfig = Field(default_factory=TaxConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    stock: StockConfig = Field(default_factory=StockConfig)
    shipping: ShippingConfig = Field(default_factory=ShippingConfig)


_cached_configs: Dict[str, Tuple[BusinessConfig, float]] = {}


def _config_path(path: Optional[str]) -> Path:
    return Path(path or os.getenv("BUSINESS_CONFIG_PATH", "app/business_config.conf"))


def _parse_categories(raw: str) -> Dict[str, str]:
    # Format: name:IN,name:OUT
    out: Dict[str, str] = {}
    for part in [p.strip() for p in raw.split(",") if p.strip()]:
        if ":" not in part:
            continue
        name, direction = part.rsplit(":", 1)
        name = name.strip()
        direction = direction.strip().upper()
        if name and direction in ("IN", "OUT"):
            out[name] = direction
    return out


def load_business_config(path: Optional[str] = None) -> BusinessConfig:
    cfg_path = _config_path(path)
    key = str(cfg_path)
    try:
        mtime = float(cfg_path.stat().st_mtime)
    except OSError:
        mtime = 0.0

    cached = _cached_configs.get(key)
    if cached is not None and cached[1] == mtime:
        return cached[0]

    if not cfg_path.exists():
        cfg = BusinessConfig()
    elif cfg_path.suffix.lower() == ".json":
        cfg = BusinessConfig.model_validate(json.loads(cfg_path.read_text(encoding="utf-8")))
    else:
        cfg = _load_ini(cfg_path)

    stock_override = (os.getenv("FEFO_ATOMIC_ISSUE") or "").strip().lower()
    if stock_override in ("auto", "off"):
        cfg.stock.atomic_issue = stock_override

    _cached_configs[key] = (cfg, mtime)
    return cfg


def _load_ini(path: Path) -> BusinessConfig:
    parser = configparser.ConfigParser()
    parser.read(path, encoding="utf-8")

    def get(section: str, key: str, default: str = "") -> str:
        return (parser.get(section, key, fallback=default) or "").strip()

    vat_raw = get("tax", "vat_rate", "0.1")
    try:
        vat_rate = float(vat_raw)
    except ValueError:
        vat_rate = 0.1

    categories = _parse_categories(get("ledger", "categories", "")) or _default_categories()
    default_category = get("ledger", "default_category", "")
    if default_category not in categories:
        default_category = next(iter(categories))

    atomic_issue = get("stock", "atomic_issue", "auto").lower()
    if atomic_issue not in ("auto", "off"):
        atomic_issue = "auto"

    return BusinessConfig(
        company=CompanyConfig(
            name=get("company", "name", "My Company"),
            business_no=get("company", "business_no", ""),
        ),
        currency=CurrencyConfig(
            code=get("currency", "code", "KRW"),
            symbol=get("currency", "symbol", "₩"),
        ),
        tax=TaxConfig(vat_rate=vat_rate),
        ledger=LedgerConfig(categories=categories, default_category=default_category),
        stock=StockConfig(atomic_issue=atomic_issue),
        shipping=ShippingConfig(
            hidden_customers=[c.strip() for c in get("shipping", "hidden_customers", "").split(",") if c.strip()],
        ),
    )
