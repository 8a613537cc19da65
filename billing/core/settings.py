from __future__ import annotations

from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union
import json
import logging
import os


from billing.core.paths import settings_path

logger = logging.getLogger(__name__)

# Path to the settings.json (runtime-aware)
SETTINGS_PATH = settings_path()


def _default_address() -> List[str]:
	return ["COIMBATORE", "TAMILNADU", "INDIA"]


def _default_terms() -> List[str]:
	return [
		"• A minimum of 5-10 days will be taken to dispatch the order.",
		"• Defective products must be reported within 24 hours of delivery.",
		"• All prices are in Indian Rupees .",
	]


@dataclass
class Settings:
	company_name: str = "E-GROOTS ED-TECH SOLUTIONS"
	company_address: List[str] = field(default_factory=_default_address)
	company_phone: str = "+91-8015221905"
	company_email: str = "egroots.in@gmail.com"
	# Text brand mark drawn when the logo image is missing
	brand_text: str = "E-GROOTS"
	# Relative (to the project/bundle) or absolute path of the brand image
	logo_path: Optional[str] = "assets/kk.jpg"
	left_signatory: str = "(Pugalenthi G)"
	left_role: str = "FOUNDER"
	right_signatory: str = "(Mohan Prasanth N)"
	right_role: str = "DIRECTOR"
	terms_title: str = "Terms and Conditions:"
	terms: List[str] = field(default_factory=_default_terms)
	currency_word: str = "rupees"
	# SheetDB endpoint for the invoice log; empty disables the side-channel
	sheetdb_url: str = ""
	sheetdb_timeout: float = 10.0
	# Where rendered bills are materialised before delivery
	uploads_dir: str = "uploads"
	# Where the tabular export (invoices.xlsx) is looked up
	data_dir: str = "."
	# Seconds a delivered bill stays on disk before it is reclaimed
	cleanup_delay: float = 10.0
	port: int = 3005

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "Settings":
		# Merge provided values over defaults, ignore unknown keys
		defaults = asdict(cls())
		merged: Dict[str, Any] = {**defaults, **{k: v for k, v in data.items() if k in defaults}}
		return cls(**merged)

	def to_dict(self) -> Dict[str, Any]:
		return asdict(self)


def _coerce_path(path: Optional[Union[str, Path]]) -> Path:
	return Path(path) if path is not None else SETTINGS_PATH


def apply_env_overrides(settings: Settings, env: Optional[Mapping[str, str]] = None) -> Settings:
	"""Overlay SHEETDB_URL, PORT and BILLING_UPLOADS_DIR from the environment."""
	env = os.environ if env is None else env
	if env.get("SHEETDB_URL"):
		settings.sheetdb_url = env["SHEETDB_URL"]
	if env.get("BILLING_UPLOADS_DIR"):
		settings.uploads_dir = env["BILLING_UPLOADS_DIR"]
	port = env.get("PORT")
	if port:
		try:
			settings.port = int(port)
		except ValueError:
			logger.warning("Ignoring non-numeric PORT=%r", port)
	return settings


def load_settings(path: Optional[Union[str, Path]] = None, env: Optional[Mapping[str, str]] = None) -> Settings:
	"""
	Load settings from JSON (UTF-8). If the file is missing, write defaults and return them.
	Environment overrides are applied on top of whatever was loaded.
	"""
	p = _coerce_path(path)
	if not p.exists():
		settings = Settings()
		save_settings(settings, p)
		return apply_env_overrides(settings, env)

	try:
		with p.open("r", encoding="utf-8") as f:
			raw: Dict[str, Any] = json.load(f)
	except (json.JSONDecodeError, OSError):
		# If unreadable/corrupt, fall back to defaults (do not overwrite automatically)
		logger.warning("Settings file %s unreadable; using defaults", p)
		return apply_env_overrides(Settings(), env)

	return apply_env_overrides(Settings.from_dict(raw if isinstance(raw, dict) else {}), env)


def save_settings(settings: Settings, path: Optional[Union[str, Path]] = None) -> None:
	"""Save settings to JSON (UTF-8), creating parent dirs if needed."""
	p = _coerce_path(path)
	p.parent.mkdir(parents=True, exist_ok=True)
	# Pretty JSON, keep Unicode
	tmp = p.with_suffix(p.suffix + ".tmp")
	with tmp.open("w", encoding="utf-8", newline="\n") as f:
		json.dump(settings.to_dict(), f, indent=2, ensure_ascii=False)
		f.write("\n")
	tmp.replace(p)
