"""Template library: named images pinned to canvas coordinates, stored as JSON."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Union

from pydantic import ValidationError

from ..errors import DuplicateTemplateName, InvalidTemplateImport, InvalidTemplateRecord, TemplateNotFound
from ..models.coords import TileCoords
from ..models.template import Template, TemplateCoords, normalize_name
from ..utils.image_utils import data_url_to_bytes, file_to_data_url

logger = logging.getLogger(__name__)

EXPORT_VERSION = 1


def make_unique_name(base_name: str, used: set[str]) -> str:
    """
    Pick a name not in ``used`` (compared case-insensitively) and reserve it.

    Collisions get a numeric suffix: "Name (2)", "Name (3)", ...
    """
    name = (base_name or "").strip() or "Template"
    if normalize_name(name) not in used:
        used.add(normalize_name(name))
        return name

    n = 2
    while True:
        candidate = f"{name} ({n})"
        if normalize_name(candidate) not in used:
            used.add(normalize_name(candidate))
            return candidate
        n += 1


def has_duplicate_names(templates: list[Template]) -> bool:
    seen = set()
    for t in templates:
        if t.key in seen:
            return True
        seen.add(t.key)
    return False


class TemplateLibrary:
    """Ordered template collection persisted to a JSON file."""

    def __init__(self, path: Union[str, Path]):
        """
        Initialize template library.

        Args:
            path: JSON file holding the template list (created on first save)
        """
        self.path = Path(path)

    def load(self) -> list[Template]:
        """
        Load all templates, newest first. Unreadable stores load as empty.

        Raises:
            InvalidTemplateRecord: The store holds a malformed template
        """
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Template store %s is not valid JSON; treating as empty", self.path)
            return []
        if not isinstance(raw, list):
            return []
        try:
            return [Template.model_validate(item) for item in raw]
        except ValidationError as exc:
            raise InvalidTemplateRecord(
                f"Template store {self.path} holds an invalid record: {_first_error(exc)}"
            ) from exc

    def save(self, templates: list[Template]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [t.to_json_dict() for t in templates]
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def get(self, name: str) -> Template:
        return self._find(self.load(), name)[1]

    def add(
        self,
        name: str,
        image_path: Union[str, Path],
        coords: TileCoords,
    ) -> Template:
        """
        Add a new template at the front of the list.

        Raises:
            DuplicateTemplateName: A template with this name already exists
            InvalidTemplateRecord: Name is blank or the image is unusable
        """
        templates = self.load()
        if any(t.key == normalize_name(name) for t in templates):
            raise DuplicateTemplateName(name.strip())

        image_path = Path(image_path)
        data_url, mime = file_to_data_url(image_path)
        try:
            template = Template(
                name=name,
                filename=image_path.name,
                mime=mime,
                data_url=data_url,
                coords=TemplateCoords.from_tile_coords(coords),
            )
        except ValidationError as exc:
            raise InvalidTemplateRecord(f"Invalid template: {_first_error(exc)}") from exc

        templates.insert(0, template)
        self.save(templates)
        logger.info("Added template %r at %s", template.name, coords)
        return template

    def delete(self, name: str) -> Template:
        templates = self.load()
        idx, template = self._find(templates, name)
        del templates[idx]
        self.save(templates)
        return template

    def move(self, name: str, delta: int) -> int:
        """
        Shift a template up (negative) or down (positive) the list.

        Returns:
            The template's new index (clamped to the list bounds)
        """
        templates = self.load()
        idx, template = self._find(templates, name)
        to = max(0, min(len(templates) - 1, idx + delta))
        if to != idx:
            templates.pop(idx)
            templates.insert(to, template)
            self.save(templates)
        return to

    def write_image(self, name: str, dest_dir: Union[str, Path]) -> Path:
        """Decode a template's image back to a file."""
        template = self.get(name)
        dest_dir = Path(dest_dir)
        dest_dir.mkdir(parents=True, exist_ok=True)
        try:
            data = data_url_to_bytes(template.data_url)
        except ValueError as exc:
            raise InvalidTemplateRecord(f"Template {template.name!r} has an undecodable image") from exc
        path = dest_dir / _output_name(template)
        path.write_bytes(data)
        return path

    def export_payload(self) -> dict[str, Any]:
        return {
            "version": EXPORT_VERSION,
            "exportedAt": datetime.now(timezone.utc).isoformat(),
            "templates": [t.to_json_dict() for t in self.load()],
        }

    def import_payload(self, payload: Any) -> list[Template]:
        """
        Merge an exported payload into the library.

        Invalid entries are skipped and exact duplicates of existing entries
        are dropped. Names are made unique when the import itself has
        duplicate names or a name collides with an existing template.

        Returns:
            Templates that were added (placed before existing ones)

        Raises:
            InvalidTemplateImport: Payload shape is wrong or has no valid templates
        """
        if not isinstance(payload, dict) or not isinstance(payload.get("templates"), list):
            raise InvalidTemplateImport("Invalid import file")

        incoming_raw = []
        for item in payload["templates"]:
            try:
                incoming_raw.append(Template.model_validate(item))
            except ValidationError as exc:
                logger.warning("Skipping invalid template entry: %s", _first_error(exc))
        if not incoming_raw:
            raise InvalidTemplateImport("No valid templates found")

        rename_all = has_duplicate_names(incoming_raw)
        existing = self.load()
        seen_exact = {t.exact_key for t in existing}
        used_names = {t.key for t in existing}

        incoming = []
        for t in incoming_raw:
            if t.exact_key in seen_exact:
                continue
            if rename_all or t.key in used_names:
                t = t.model_copy(update={"name": make_unique_name(t.name, used_names)})
            else:
                used_names.add(t.key)
            seen_exact.add(t.exact_key)
            incoming.append(t)

        if incoming:
            self.save(incoming + existing)
        logger.info("Imported %d template(s)", len(incoming))
        return incoming

    def import_file(self, path: Union[str, Path]) -> list[Template]:
        try:
            payload = json.loads(Path(path).read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise InvalidTemplateImport(f"Invalid import file: {exc}") from exc
        return self.import_payload(payload)

    def _find(self, templates: list[Template], name: str) -> tuple[int, Template]:
        key = normalize_name(name)
        for idx, t in enumerate(templates):
            if t.key == key:
                return idx, t
        raise TemplateNotFound(name)


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    field = ".".join(str(part) for part in err.get("loc", ()))
    return f"{field}: {err.get('msg')}" if field else str(err.get("msg"))


def _output_name(template: Template) -> str:
    """File name for an extracted image, stripped of any directory part."""
    for candidate in (template.filename, f"{template.name}.png"):
        name = Path(candidate or "").name
        if name not in ("", ".", ".."):
            return name
    return "template.png"
