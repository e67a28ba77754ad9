"""
CycloneDX serialization of exported solution graphs.

Turns an ExportedGraph into a CycloneDX Bom and renders it as JSON or XML.
Information CycloneDX has no field for (unresolved edges, version conflicts,
metadata provenance) is carried as component properties.
"""

import json
from typing import Dict, List, Optional, Tuple, Type

from cyclonedx.model import Property
from cyclonedx.model.bom import Bom, BomMetaData
from cyclonedx.model.component import Component, ComponentType
from cyclonedx.model.license import DisjunctiveLicense, LicenseExpression
from packageurl import PackageURL

from . import __version__
from ._enrichment.license_utils import validate_spdx_expression
from ._export import ExportedComponent, ExportedGraph
from ._graph import NO_PROVENANCE, ComponentIdentity
from .exceptions import ConfigurationError
from .logging_config import logger

# Output formats
FORMAT_JSON = "json"
FORMAT_XML = "xml"

# Default file names per format
DEFAULT_FILENAMES = {FORMAT_JSON: "bom.json", FORMAT_XML: "bom.xml"}

DEFAULT_CYCLONEDX_VERSION = "1.6"

# Property names
PROPERTY_PREFIX = "solution-sbom"
PROPERTY_CONFLICTED = f"{PROPERTY_PREFIX}:conflicted"
PROPERTY_UNRESOLVED = f"{PROPERTY_PREFIX}:unresolved-dependency"
PROPERTY_PROVENANCE = f"{PROPERTY_PREFIX}:enrichment:source"
PROPERTY_ORIGIN_COUNT = f"{PROPERTY_PREFIX}:origin-count"

# Lazy imports to avoid loading all outputters upfront
_CYCLONEDX_OUTPUTTERS: Dict[Tuple[str, str], Optional[Type]] = {
    (FORMAT_JSON, "1.5"): None,  # JsonV1Dot5
    (FORMAT_JSON, "1.6"): None,  # JsonV1Dot6
    (FORMAT_XML, "1.5"): None,  # XmlV1Dot5
    (FORMAT_XML, "1.6"): None,  # XmlV1Dot6
}


def _get_cyclonedx_outputter(output_format: str, spec_version: str) -> Type:
    """
    Get the CycloneDX outputter class for a format and spec version.

    Raises:
        ValueError: If the combination is not supported
    """
    key = (output_format, spec_version)
    if key not in _CYCLONEDX_OUTPUTTERS:
        supported = ", ".join(f"{fmt} {ver}" for fmt, ver in sorted(_CYCLONEDX_OUTPUTTERS))
        raise ValueError(f"Unsupported CycloneDX output: {output_format} {spec_version}. Supported: {supported}")

    if _CYCLONEDX_OUTPUTTERS[key] is None:
        if key == (FORMAT_JSON, "1.5"):
            from cyclonedx.output.json import JsonV1Dot5

            _CYCLONEDX_OUTPUTTERS[key] = JsonV1Dot5
        elif key == (FORMAT_JSON, "1.6"):
            from cyclonedx.output.json import JsonV1Dot6

            _CYCLONEDX_OUTPUTTERS[key] = JsonV1Dot6
        elif key == (FORMAT_XML, "1.5"):
            from cyclonedx.output.xml import XmlV1Dot5

            _CYCLONEDX_OUTPUTTERS[key] = XmlV1Dot5
        elif key == (FORMAT_XML, "1.6"):
            from cyclonedx.output.xml import XmlV1Dot6

            _CYCLONEDX_OUTPUTTERS[key] = XmlV1Dot6

    return _CYCLONEDX_OUTPUTTERS[key]


def _bom_ref(identity: ComponentIdentity) -> str:
    return identity.purl


def _license_entries(licenses: Tuple[str, ...]) -> List:
    """Map license strings to CycloneDX license entries."""
    if not licenses:
        return []
    if len(licenses) == 1:
        value = licenses[0]
    else:
        value = " OR ".join(f"({lic})" if " " in lic else lic for lic in licenses)
    if validate_spdx_expression(value):
        return [LicenseExpression(value=value)]
    # Not SPDX: keep each as a named license
    return [DisjunctiveLicense(name=lic) for lic in licenses]


def _build_component(exported: ExportedComponent, unresolved: List[ComponentIdentity]) -> Component:
    identity = exported.identity
    component = Component(
        name=identity.name,
        version=identity.version,
        type=ComponentType.LIBRARY,
        purl=PackageURL(type=identity.ecosystem, name=identity.name, version=identity.version),
        bom_ref=_bom_ref(identity),
        licenses=_license_entries(exported.licenses),
    )
    if exported.vendor:
        component.publisher = exported.vendor

    component.properties.add(Property(name=PROPERTY_ORIGIN_COUNT, value=str(exported.origin_count)))
    if exported.conflicted:
        component.properties.add(Property(name=PROPERTY_CONFLICTED, value="true"))
    if exported.provenance != NO_PROVENANCE:
        component.properties.add(Property(name=PROPERTY_PROVENANCE, value=exported.provenance))
    for target in unresolved:
        component.properties.add(Property(name=PROPERTY_UNRESOLVED, value=target.purl))
    return component


def load_metadata_template(path: str) -> BomMetaData:
    """
    Read the metadata block of a CycloneDX JSON document.

    The template supplies fields the dependency graph cannot know, such as
    the solution component, its supplier, authors and extra tools.

    Raises:
        ConfigurationError: If the file cannot be read or is not CycloneDX JSON
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read metadata template {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in metadata template {path}: {e}") from e

    if not isinstance(data, dict) or data.get("bomFormat") != "CycloneDX":
        raise ConfigurationError(f"Metadata template {path} is not a CycloneDX JSON document")

    try:
        template = Bom.from_json(data)
    except (ValueError, KeyError, TypeError) as e:
        raise ConfigurationError(f"Invalid CycloneDX metadata in {path}: {e}") from e
    logger.debug(f"Loaded metadata template from {path}")
    return template.metadata


def apply_metadata_template(bom: Bom, template: BomMetaData) -> None:
    """
    Merge template metadata into a generated Bom.

    The generated Bom keeps its own tool entry and root component; template
    values fill everything else. Legacy template tools are carried over as
    tool components.
    """
    metadata = bom.metadata
    if metadata.component is None and template.component is not None:
        metadata.component = template.component
    if template.supplier is not None:
        metadata.supplier = template.supplier
    for author in template.authors:
        metadata.authors.add(author)
    for license_entry in template.licenses:
        metadata.licenses.add(license_entry)
    for prop in template.properties:
        metadata.properties.add(prop)

    for tool in template.tools.tools:
        metadata.tools.components.add(
            Component(
                type=ComponentType.APPLICATION,
                group=tool.vendor,
                name=tool.name or "unknown",
                version=tool.version,
            )
        )
    for component in template.tools.components:
        metadata.tools.components.add(component)
    for service in template.tools.services:
        metadata.tools.services.add(service)


def build_bom(
    exported: ExportedGraph,
    root_name: Optional[str] = None,
    template: Optional[BomMetaData] = None,
) -> Bom:
    """
    Build a CycloneDX Bom from an exported graph.

    Resolved edges become CycloneDX dependencies; unresolved edges are kept
    as properties on the depending component so nothing is silently dropped.

    Args:
        exported: Exported solution graph
        root_name: Optional name for the metadata (solution) component
        template: Optional metadata read with load_metadata_template; an
            explicit root_name wins over the template's component

    Returns:
        Bom ready for serialization
    """
    bom = Bom()
    bom.metadata.tools.components.add(
        Component(type=ComponentType.APPLICATION, name="solution-sbom", version=__version__)
    )

    unresolved_by_source: Dict[ComponentIdentity, List[ComponentIdentity]] = {}
    for dep in exported.dependencies:
        if not dep.resolved:
            unresolved_by_source.setdefault(dep.from_identity, []).append(dep.to_identity)

    components: Dict[ComponentIdentity, Component] = {}
    for item in exported.components:
        component = _build_component(item, unresolved_by_source.get(item.identity, []))
        components[item.identity] = component
        bom.components.add(component)

    depended_on = set()
    for identity, targets in exported.dependency_map().items():
        depended_on.update(targets)
        bom.register_dependency(components[identity], [components[target] for target in targets])

    if root_name:
        bom.metadata.component = Component(type=ComponentType.APPLICATION, name=root_name, bom_ref=root_name)
    if template is not None:
        apply_metadata_template(bom, template)

    root = bom.metadata.component
    if root is not None:
        top_level = [components[c.identity] for c in exported.components if c.identity not in depended_on]
        bom.register_dependency(root, top_level)

    return bom


def serialize_cyclonedx_bom(
    bom: Bom,
    output_format: str = FORMAT_JSON,
    spec_version: str = DEFAULT_CYCLONEDX_VERSION,
) -> str:
    """
    Serialize a CycloneDX Bom.

    Args:
        bom: The Bom to serialize
        output_format: "json" or "xml"
        spec_version: CycloneDX spec version ("1.5" or "1.6")

    Returns:
        Serialized document

    Raises:
        ValueError: If the format/version combination is unsupported
    """
    outputter_class = _get_cyclonedx_outputter(output_format, spec_version)
    logger.debug(f"Serializing CycloneDX BOM as {output_format} {spec_version}")
    outputter = outputter_class(bom)
    if output_format == FORMAT_JSON:
        return outputter.output_as_string(indent=2)
    return outputter.output_as_string()


def get_supported_cyclonedx_versions() -> List[str]:
    """List supported CycloneDX spec versions."""
    return sorted({version for _, version in _CYCLONEDX_OUTPUTTERS})
