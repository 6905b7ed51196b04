"""
Configuration module for loading and managing config files.
"""

import copy
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field

from vr_ingest.ingestion.notifier import NotifierConfig
from vr_ingest.ingestion.service import IngestionConfig


DEFAULT_CONFIG_PATH = "configs/ingest_config.yaml"

DEFAULTS: Dict[str, Dict[str, Any]] = {
	"ingestion": {
		"host": "0.0.0.0",
		"sensor_port": 5000,
		"command_port": 5001,
		"poll_interval": 0.25,
		"read_timeout": 0.5,
		"buffer_size": 256,
	},
	"handoff": {
		"directory": "~/.vr_ingest",
		"filename": "SensorData.txt",
	},
	"notifier": {
		"enabled": True,
		"host": "192.168.3.64",
		"port": 5300,
		"timeout": 2.0,
		"max_workers": 2,
		"max_pending": 32,
	},
	"scene": {
		"move_amount": 1.0,
		"rotate_amount": 45.0,
		"anchor": [0.0, 3.0, 0.0],
		"rig_position": [20.0, 20.0, 20.0],
	},
	"physics": {
		"scale_mass_with_size": True,
	},
	"runtime": {
		"fixed_timestep": 0.02,
	},
}

SECTIONS = tuple(DEFAULTS)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
	"""
	Recursively merge override into a copy of base.

	Args:
		base: Default values.
		override: Values taking precedence.

	Returns:
		Merged dictionary.
	"""
	merged = copy.deepcopy(base)
	for key, value in override.items():
		if isinstance(value, dict) and isinstance(merged.get(key), dict):
			merged[key] = _deep_merge(merged[key], value)
		else:
			merged[key] = value
	return merged


@dataclass
class Config:
	"""
	Central configuration class for the ingestion runtime.

	Attributes:
		ingestion: Listener host, ports and timeouts
		handoff: Handoff file location
		notifier: Outbound notifier settings
		scene: Command interpreter settings
		physics: Grabbable body settings
		runtime: Consumer loop settings
	"""

	ingestion: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULTS["ingestion"]))
	handoff: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULTS["handoff"]))
	notifier: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULTS["notifier"]))
	scene: Dict[str, Any] = field(default_factory=lambda: copy.deepcopy(DEFAULTS["scene"]))
	physics: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULTS["physics"]))
	runtime: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULTS["runtime"]))

	@classmethod
	def from_file(cls, config_path: str = DEFAULT_CONFIG_PATH) -> "Config":
		"""
		Load configuration from a YAML file, on top of the defaults.

		A missing file yields the defaults. A file whose only root key is
		"ingest" is unwrapped.

		Args:
			config_path: Path to the configuration file

		Returns:
			Config object with loaded configuration

		Raises:
			ValueError: If the file does not hold a mapping
		"""
		path = Path(config_path)
		if not path.exists():
			return cls()

		with open(path, 'r') as f:
			data = yaml.safe_load(f) or {}

		if not isinstance(data, dict):
			raise ValueError(f"Config file {path} must contain a mapping")

		# If data is {"ingest": {...}}, unwrap it.
		if "ingest" in data and len(data) == 1:
			data = data["ingest"] or {}

		merged = _deep_merge(DEFAULTS, data)
		return cls(**{section: merged[section] for section in SECTIONS})

	def get(self, key: str, default: Any = None) -> Any:
		"""
		Get configuration value by dot-separated key.

		Examples:
			config.get('ingestion.sensor_port')
			config.get('notifier.enabled')

		Args:
			key: Dot-separated configuration key
			default: Default value if key not found

		Returns:
			Configuration value or default
		"""
		section, *path = key.split('.')
		if section not in SECTIONS:
			return default

		current = getattr(self, section)
		for part in path:
			if not isinstance(current, dict) or part not in current:
				return default
			current = current[part]
		return current

	def set(self, key: str, value: Any) -> None:
		"""
		Set configuration value by dot-separated key.

		Nested keys below a section are created on demand; the section
		itself must be one of SECTIONS so that save() persists it.

		Args:
			key: Dot-separated configuration key, at least "section.name"
			value: Value to set

		Raises:
			KeyError: If the key names an unknown section or no key below it
		"""
		section, *path = key.split('.')
		if section not in SECTIONS:
			raise KeyError(f"Unknown config section '{section}' (expected one of {list(SECTIONS)})")
		if not path:
			raise KeyError(f"Config key '{key}' must name a value inside a section")

		current = getattr(self, section)
		for part in path[:-1]:
			current = current.setdefault(part, {})
		current[path[-1]] = value

	def save(self, output_path: str = DEFAULT_CONFIG_PATH) -> None:
		"""
		Save current configuration to a YAML file.

		Args:
			output_path: File to write
		"""
		path = Path(output_path)
		path.parent.mkdir(parents=True, exist_ok=True)
		data = {section: getattr(self, section) for section in SECTIONS}
		with open(path, 'w') as f:
			yaml.dump(data, f, default_flow_style=False)

	def ingestion_config(self) -> IngestionConfig:
		"""Build the IngestionConfig from the ingestion section."""
		section = self.ingestion
		return IngestionConfig(
			host=section.get("host", "0.0.0.0"),
			sensor_port=int(section.get("sensor_port", 5000)),
			command_port=int(section.get("command_port", 5001)),
			poll_interval=float(section.get("poll_interval", 0.25)),
			read_timeout=float(section.get("read_timeout", 0.5)),
			buffer_size=int(section.get("buffer_size", 256)),
		)

	def notifier_config(self) -> NotifierConfig:
		"""Build the NotifierConfig from the notifier section."""
		section = self.notifier
		return NotifierConfig(
			host=section.get("host", "192.168.3.64"),
			port=int(section.get("port", 5300)),
			timeout=float(section.get("timeout", 2.0)),
			max_workers=int(section.get("max_workers", 2)),
			max_pending=int(section.get("max_pending", 32)),
			enabled=bool(section.get("enabled", True)),
		)

	def handoff_directory(self) -> Optional[Path]:
		directory = self.handoff.get("directory")
		return Path(directory).expanduser() if directory else None
