"""
Template registry for attorney document templates.

Loads DocumentTemplate definitions once at startup, either from JSON files
in a data directory or from an explicit list, and serves lookups:
- Get a base template by id
- Resolve the effective template for a jurisdiction
- List template summaries with optional category filtering

Definitions are immutable after load and safe to read concurrently.
"""

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, List, Optional

from jinja2 import TemplateSyntaxError
from pydantic import ValidationError

from src.errors import TemplateConfigurationError, TemplateNotFoundError
from src.templates.merger import get_effective_template
from src.templates.preview import TemplatePreview, TemplateSummary, generate_preview, summarize_template
from src.templates.rendering import extract_variables
from src.templates.schemas import DocumentTemplate, EffectiveTemplate, TemplateCategory


# Configure logging for the registry module
logger = logging.getLogger(__name__)


DEFAULT_DATA_DIR = Path(__file__).parent / "data"


def check_template_text(template: DocumentTemplate) -> None:
    """
    Parse every static text and prompt so syntax errors surface at load time.

    Raises:
        TemplateConfigurationError: If any text is not a valid template
    """
    texts = []
    for section in template.sections:
        texts.append((section.section_id, section.static_content))
        texts.append((section.section_id, section.prompt_template))
    for key, text in template.substitutions.items():
        texts.append((f"default:{key}", text))
    for variant in template.variants.values():
        for override in variant.sections:
            texts.append((override.section_id, override.static_content))
            texts.append((override.section_id, override.prompt_template))
        for key, text in variant.substitutions.items():
            texts.append((f"{variant.jurisdiction}:{key}", text))

    for location, text in texts:
        if not text:
            continue
        try:
            extract_variables(text)
        except TemplateSyntaxError as e:
            raise TemplateConfigurationError(
                f"Invalid placeholder syntax in {template.template_id}/{location}: {e.message}",
                details={"template_id": template.template_id, "location": location},
            ) from e


def load_template_file(filepath: Path) -> Optional[DocumentTemplate]:
    """
    Load and validate a single template file.

    Returns:
        DocumentTemplate if the file is valid, None otherwise (logged)
    """
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)
        template = DocumentTemplate(**data)
        check_template_text(template)
        return template
    except json.JSONDecodeError as e:
        logger.warning(f"Skipping invalid JSON file {filepath}: {e}")
    except ValidationError as e:
        logger.warning(f"Skipping invalid template {filepath}: {e}")
    except TemplateConfigurationError as e:
        logger.warning(f"Skipping template {filepath}: {e.message}")
    return None


class TemplateRegistry:
    """
    Lookup from template id to DocumentTemplate.

    Usage:
        registry = TemplateRegistry()  # Loads bundled templates
        effective = registry.get_effective_template("motion-to-continue", "CA")
        summaries = registry.list_templates(TemplateCategory.CRIMINAL)
    """

    def __init__(
        self,
        templates: Optional[Iterable[DocumentTemplate]] = None,
        data_dir: Optional[Path] = None,
    ):
        """
        Initialize the registry.

        Args:
            templates: Explicit template definitions. When given, data_dir is ignored.
            data_dir: Directory of template JSON files.
                     Defaults to src/templates/data/ relative to this file.

        Raises:
            TemplateConfigurationError: If explicit templates share an id or have bad placeholders
        """
        registry = {}
        self.data_dir: Optional[Path] = None

        if templates is not None:
            for template in templates:
                if template.template_id in registry:
                    raise TemplateConfigurationError(
                        f"Duplicate template id: {template.template_id}",
                        details={"template_id": template.template_id},
                    )
                check_template_text(template)
                registry[template.template_id] = template
        else:
            self.data_dir = Path(data_dir) if data_dir is not None else DEFAULT_DATA_DIR
            for filepath in sorted(self.data_dir.glob("*.json")):
                template = load_template_file(filepath)
                if template is None:
                    continue
                if template.template_id in registry:
                    logger.warning(f"Skipping duplicate template id {template.template_id} in {filepath}")
                    continue
                registry[template.template_id] = template

        self._templates = MappingProxyType(registry)
        logger.info(f"TemplateRegistry loaded {len(self._templates)} templates")

    def __len__(self) -> int:
        return len(self._templates)

    def __contains__(self, template_id: object) -> bool:
        return template_id in self._templates

    def template_ids(self) -> List[str]:
        return sorted(self._templates)

    def get_template(self, template_id: str) -> Optional[DocumentTemplate]:
        """
        Get a base template by id.

        Returns:
            DocumentTemplate if registered, None otherwise
        """
        template = self._templates.get(template_id)
        if template is None:
            logger.debug(f"Template not found: {template_id}")
        return template

    def get_effective_template(
        self,
        template_id: str,
        jurisdiction: Optional[str],
    ) -> EffectiveTemplate:
        """
        Resolve a template merged with its jurisdiction variant.

        Jurisdictions without a variant fall back to the base template.

        Raises:
            TemplateNotFoundError: If the template id is not registered
        """
        template = self.get_template(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)
        return get_effective_template(template, jurisdiction)

    def get_preview(self, template_id: str, jurisdiction: Optional[str]) -> TemplatePreview:
        """
        Field preview of the effective template for a jurisdiction.

        Raises:
            TemplateNotFoundError: If the template id is not registered
        """
        return generate_preview(self.get_effective_template(template_id, jurisdiction))

    def list_templates(
        self,
        category: Optional[TemplateCategory] = None,
    ) -> List[TemplateSummary]:
        """
        List template summaries, optionally filtered by category.

        Returns:
            TemplateSummary list sorted by (category, template_id)
        """
        templates = [
            t for t in self._templates.values()
            if category is None or t.category == category
        ]
        templates.sort(key=lambda t: (t.category.value, t.template_id))

        logger.debug(f"Listed {len(templates)} templates (filter: {category})")
        return [summarize_template(t) for t in templates]
