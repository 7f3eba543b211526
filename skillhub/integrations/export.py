"""Catalog export for the agent orchestration system.

The document shape is consumed by an external tool-calling grammar, so the
output is a pure function of the integrations given: same input, same bytes.
"""

import json
import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Dict, IO, Sequence, Union

from .base import Integration

logger = logging.getLogger(__name__)

FORMATS = ("xml", "json")

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


class CatalogExporter:
    """Renders integrations and their tools as XML or JSON."""

    def __init__(self, indent: int = 2):
        self.indent = indent

    def to_element(self, integrations: Sequence[Integration]) -> ET.Element:
        root = ET.Element("integrations")
        for integration in integrations:
            integration_el = ET.SubElement(root, "integration", {
                "type": integration.get_type(),
                "name": integration.get_name(),
                "category": integration.category,
            })
            for definition in integration.get_tools():
                tool_el = ET.SubElement(integration_el, "tool", {"name": definition.name})
                ET.SubElement(tool_el, "description").text = definition.description

                if not definition.parameters:
                    continue
                params_el = ET.SubElement(tool_el, "parameters")
                for param in definition.parameters:
                    param_el = ET.SubElement(params_el, "parameter", {
                        "name": param.name,
                        "type": param.type,
                        "required": "true" if param.required else "false",
                    })
                    if param.description is not None:
                        ET.SubElement(param_el, "description").text = param.description
        return root

    def to_xml(self, integrations: Sequence[Integration]) -> str:
        """UTF-8 XML document with the declaration and indented elements."""
        root = self.to_element(integrations)
        ET.indent(root, space=" " * self.indent)
        return XML_DECLARATION + ET.tostring(root, encoding="unicode") + "\n"

    def to_dict(self, integrations: Sequence[Integration]) -> Dict[str, Any]:
        return {
            "integrations": [
                {
                    "type": integration.get_type(),
                    "name": integration.get_name(),
                    "category": integration.category,
                    "tools": [definition.to_dict() for definition in integration.get_tools()],
                }
                for integration in integrations
            ]
        }

    def to_json(self, integrations: Sequence[Integration]) -> str:
        return json.dumps(self.to_dict(integrations), indent=self.indent, ensure_ascii=False) + "\n"

    def render(self, integrations: Sequence[Integration], fmt: str = "xml") -> str:
        if fmt == "xml":
            return self.to_xml(integrations)
        if fmt == "json":
            return self.to_json(integrations)
        raise ValueError(f"Unsupported export format '{fmt}'. Must be one of: {', '.join(FORMATS)}")

    def write(
        self,
        integrations: Sequence[Integration],
        target: Union[str, Path, IO[str]],
        fmt: str = "xml"
    ) -> str:
        """Render and write to a path or an open text stream."""
        document = self.render(integrations, fmt)
        if isinstance(target, (str, Path)):
            Path(target).write_text(document, encoding="utf-8")
            logger.info(f"Exported {len(integrations)} integrations to {target}")
        else:
            target.write(document)
        return document


def count_tools(integrations: Sequence[Integration]) -> int:
    return sum(len(integration.get_tools()) for integration in integrations)
