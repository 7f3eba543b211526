"""Tests for catalog export."""

import io
import json

import pytest

from conftest import EchoIntegration
from skillhub.integrations.base import PlatformIntegration, tool
from skillhub.integrations.export import CatalogExporter, count_tools
from skillhub.integrations.schema import ToolDefinition

ECHO_XML = """<?xml version="1.0" encoding="UTF-8"?>
<integrations>
  <integration type="system.echo" name="Echo" category="system">
    <tool name="echo">
      <description>Echo</description>
      <parameters>
        <parameter name="text" type="string" required="true" />
      </parameters>
    </tool>
  </integration>
</integrations>
"""


class NoParams(PlatformIntegration):
    type = "system.ping"
    name = "Ping & Pong"

    def get_tools(self):
        return [ToolDefinition(name="ping", description="Reply with <pong>")]

    @tool("ping")
    async def ping(self, parameters, credentials=None):
        return {"success": True}


@pytest.fixture
def exporter():
    return CatalogExporter()


def test_xml_document(exporter):
    assert exporter.to_xml([EchoIntegration()]) == ECHO_XML


def test_xml_is_deterministic(exporter, registry):
    """Two exports of the same registry are byte identical."""
    assert exporter.render(registry.all()) == exporter.render(registry.all())


def test_tools_without_parameters_omit_the_element(exporter):
    document = exporter.to_xml([NoParams()])

    assert "<parameters" not in document
    assert 'name="Ping &amp; Pong"' in document
    assert "<description>Reply with &lt;pong&gt;</description>" in document


def test_parameter_descriptions_are_nested(exporter, fake_integration):
    document = exporter.to_xml([fake_integration])

    assert 'category="user"' in document
    assert '<parameter name="query" type="string" required="true">' in document
    assert "<description>Query</description>" in document


def test_json_document(exporter, registry):
    data = json.loads(exporter.render(registry.all(), "json"))

    echo, fake = data["integrations"]
    assert echo == {
        "type": "system.echo",
        "name": "Echo",
        "category": "system",
        "tools": [
            {
                "name": "echo",
                "description": "Echo",
                "parameters": [{"name": "text", "type": "string", "required": True}],
            }
        ],
    }
    assert fake["category"] == "user"
    assert [t["name"] for t in fake["tools"]] == ["fake_lookup", "fake_explode"]


def test_rejects_unknown_format(exporter):
    with pytest.raises(ValueError):
        exporter.render([], "yaml")


def test_empty_catalog(exporter):
    assert exporter.to_xml([]) == '<?xml version="1.0" encoding="UTF-8"?>\n<integrations />\n'


def test_write_to_path_and_stream(exporter, tmp_path):
    target = tmp_path / "tools.xml"
    stream = io.StringIO()

    written = exporter.write([EchoIntegration()], target)
    exporter.write([EchoIntegration()], stream)

    assert target.read_text(encoding="utf-8") == written == ECHO_XML
    assert stream.getvalue() == ECHO_XML


def test_count_tools(registry):
    assert count_tools(registry.all()) == 3
