"""
WPS configuration document builder.

Assembles the XML configuration consumed by the processing service:
algorithm repositories, parser and generator data handlers (each with
optional Formats and free-form properties) and the server block.

The document is built with xml.etree.ElementTree. Elements are written
unqualified under a default namespace declared on the root, so the
serialized document is namespace-qualified when parsed back.
"""

import copy
import logging
import xml.etree.ElementTree as ET
from typing import Iterable, List, Mapping, NamedTuple, Optional, Tuple

from wps_commons.conversion import FORMAT_ELEMENT, format_from_element, format_to_element
from wps_commons.format import Format
from wps_commons.server.config import WPSSettings

logger = logging.getLogger(__name__)

CONFIG_NAMESPACE = "http://n52.org/wps"
LOCAL_ALGORITHM_REPOSITORY = "org.n52.wps.server.LocalAlgorithmRepository"
ALGORITHM_PROPERTY = "Algorithm"
DATABASE_CLASS_NAME_PROPERTY = "databaseClassName"

# Capabilities skeleton constants
WPS_NAMESPACE = "http://www.opengis.net/wps/1.0.0"
OWS_NAMESPACE = "http://www.opengis.net/ows/1.1"
XLINK_NAMESPACE = "http://www.w3.org/1999/xlink"
SERVICE = "WPS"
SERVICE_VERSION = "1.0.0"
UPDATE_SEQUENCE = "1"
LANGUAGE = "en-US"
GET_CAPABILITIES = "GetCapabilities"
DESCRIBE_PROCESS = "DescribeProcess"
EXECUTE = "Execute"

ET.register_namespace("wps", WPS_NAMESPACE)
ET.register_namespace("ows", OWS_NAMESPACE)
ET.register_namespace("xlink", XLINK_NAMESPACE)

Properties = Mapping[str, Iterable[str]]


class DataHandler(NamedTuple):
    """A registered parser or generator as read back from the document."""

    name: str
    class_name: str
    formats: Tuple[Format, ...]


def _bool(value: bool) -> str:
    return "true" if value else "false"


class WPSConfiguration:
    """
    In-memory WPS configuration document.

    Not thread-safe; the WPS wrapper serializes access with its own lock.
    """

    def __init__(
        self,
        settings: WPSSettings,
        host: Optional[str] = None,
        port: Optional[int] = None,
        https: Optional[bool] = None,
    ):
        self._parser_count = 0
        self._generator_count = 0

        self.root = ET.Element("WPSConfiguration", {"xmlns": CONFIG_NAMESPACE})
        datahandlers = ET.SubElement(self.root, "Datahandlers")
        self._parser_list = ET.SubElement(datahandlers, "ParserList")
        self._generator_list = ET.SubElement(datahandlers, "GeneratorList")
        self._repository_list = ET.SubElement(self.root, "AlgorithmRepositoryList")
        ET.SubElement(self.root, "RemoteRepositoryList")

        protocol = settings.protocol if https is None else ("https" if https else "http")
        self._server = ET.SubElement(
            self.root,
            "Server",
            {
                "hostname": host or settings.host,
                "hostport": str(port or settings.port),
                "protocol": protocol,
                "webappPath": settings.webapp_path,
                "includeDataInputsInResponse": _bool(
                    settings.include_data_inputs_in_response
                ),
                "computationTimeoutMilliSeconds": str(settings.computation_timeout_ms),
                "cacheCapabilites": _bool(settings.cache_capabilities),
                "minPoolSize": str(settings.min_pool_size),
                "maxPoolSize": str(settings.max_pool_size),
                "keepAliveSeconds": str(settings.keep_alive_seconds),
                "maxQueuedTasks": str(settings.max_queued_tasks),
            },
        )
        database = ET.SubElement(self._server, "Database")
        self._add_property(
            database, DATABASE_CLASS_NAME_PROPERTY, settings.database_class_name
        )

    # ------------------------------------------------------------------
    # Server block
    # ------------------------------------------------------------------

    @property
    def hostname(self) -> str:
        return self._server.get("hostname")

    @property
    def port(self) -> int:
        return int(self._server.get("hostport"))

    @property
    def protocol(self) -> str:
        return self._server.get("protocol")

    def server_attribute(self, name: str) -> Optional[str]:
        return self._server.get(name)

    def set_min_pool_size(self, size: int) -> None:
        self._server.set("minPoolSize", str(size))

    def set_max_pool_size(self, size: int) -> None:
        self._server.set("maxPoolSize", str(size))

    def set_include_data_inputs_in_response(self, include: bool) -> None:
        self._server.set("includeDataInputsInResponse", _bool(include))

    def set_keep_alive(self, seconds: int) -> None:
        self._server.set("keepAliveSeconds", str(seconds))

    def set_computation_timeout(self, milliseconds: int) -> None:
        self._server.set("computationTimeoutMilliSeconds", str(milliseconds))

    def set_max_queued_tasks(self, maximum: int) -> None:
        self._server.set("maxQueuedTasks", str(maximum))

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    @staticmethod
    def _add_property(parent: ET.Element, name: str, value: str) -> ET.Element:
        prop = ET.SubElement(parent, "Property", {"name": name, "active": "true"})
        prop.text = value
        return prop

    def _add_properties(self, parent: ET.Element, properties: Optional[Properties]) -> None:
        if properties is None:
            return
        for name, values in properties.items():
            for value in values:
                self._add_property(parent, name, value)

    def add_repository(
        self,
        class_name: str,
        properties: Optional[Properties] = None,
    ) -> ET.Element:
        """
        Register an algorithm repository.

        A repository already registered under the same class name is
        re-activated and extended instead of duplicated.

        Args:
            class_name: Fully qualified repository class name
            properties: Property name -> values; one element per value

        Returns:
            The <Repository> element
        """
        repository = None
        for candidate in self._repository_list.findall("Repository"):
            if candidate.get("className") == class_name:
                repository = candidate
                break
        if repository is None:
            repository = ET.SubElement(self._repository_list, "Repository")
            logger.debug("Added algorithm repository %s", class_name)

        repository.set("name", class_name)
        repository.set("className", class_name)
        repository.set("active", "true")
        self._add_properties(repository, properties)
        return repository

    def add_algorithm(self, class_name: str) -> ET.Element:
        """Register an algorithm with the local algorithm repository."""
        repository = self.add_repository(LOCAL_ALGORITHM_REPOSITORY)
        logger.debug("Added algorithm %s", class_name)
        return self._add_property(repository, ALGORITHM_PROPERTY, class_name)

    def _next_parser_id(self) -> int:
        parser_id = self._parser_count
        self._parser_count += 1
        return parser_id

    def _next_generator_id(self) -> int:
        generator_id = self._generator_count
        self._generator_count += 1
        return generator_id

    def _add_datahandler(
        self,
        parent: ET.Element,
        tag: str,
        name: str,
        class_name: str,
        formats: Optional[Iterable[Format]],
        properties: Optional[Properties],
    ) -> ET.Element:
        handler = ET.SubElement(
            parent,
            tag,
            {"name": name, "className": class_name, "active": "true"},
        )
        if formats is not None:
            for fmt in formats:
                format_to_element(fmt, handler)
        self._add_properties(handler, properties)
        logger.debug("Added %s %s (%s)", tag.lower(), name, class_name)
        return handler

    def add_parser(
        self,
        class_name: str,
        formats: Optional[Iterable[Format]] = None,
        properties: Optional[Properties] = None,
    ) -> ET.Element:
        """Register a parser; names are assigned as parser0, parser1, ..."""
        return self._add_datahandler(
            self._parser_list,
            "Parser",
            f"parser{self._next_parser_id()}",
            class_name,
            formats,
            properties,
        )

    def add_generator(
        self,
        class_name: str,
        formats: Optional[Iterable[Format]] = None,
        properties: Optional[Properties] = None,
    ) -> ET.Element:
        """Register a generator; names are assigned as generator0, generator1, ..."""
        return self._add_datahandler(
            self._generator_list,
            "Generator",
            f"generator{self._next_generator_id()}",
            class_name,
            formats,
            properties,
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def repositories(self) -> List[str]:
        return [r.get("className") for r in self._repository_list.findall("Repository")]

    def algorithms(self) -> List[str]:
        """Class names of all algorithms in active repositories."""
        result = []
        for repository in self._repository_list.findall("Repository"):
            if repository.get("active") != "true":
                continue
            for prop in repository.findall("Property"):
                if prop.get("name") == ALGORITHM_PROPERTY and prop.get("active") == "true":
                    result.append(prop.text)
        return result

    @staticmethod
    def _datahandlers(parent: ET.Element) -> List[DataHandler]:
        return [
            DataHandler(
                name=handler.get("name"),
                class_name=handler.get("className"),
                formats=tuple(
                    format_from_element(f) for f in handler.findall(FORMAT_ELEMENT)
                ),
            )
            for handler in parent
        ]

    def parsers(self) -> List[DataHandler]:
        return self._datahandlers(self._parser_list)

    def generators(self) -> List[DataHandler]:
        return self._datahandlers(self._generator_list)

    def snapshot(self) -> "WPSConfiguration":
        """Return a detached deep copy, unaffected by later registrations."""
        return copy.deepcopy(self)

    def to_xml(self) -> str:
        return ET.tostring(self.root, encoding="unicode")


# ============================================================================
# Capabilities skeleton
# ============================================================================

def _wps(tag: str) -> str:
    return f"{{{WPS_NAMESPACE}}}{tag}"


def _ows(tag: str) -> str:
    return f"{{{OWS_NAMESPACE}}}{tag}"


def _add_operation(metadata: ET.Element, name: str, methods: Iterable[str]) -> None:
    operation = ET.SubElement(metadata, _ows("Operation"), {"name": name})
    http = ET.SubElement(ET.SubElement(operation, _ows("DCP")), _ows("HTTP"))
    for method in methods:
        ET.SubElement(http, _ows(method), {f"{{{XLINK_NAMESPACE}}}href": ""})


def create_capabilities_skeleton() -> ET.Element:
    """
    Build the WPS 1.0.0 capabilities skeleton.

    Declares the en-US language, the WPS service at version 1.0.0 and the
    GetCapabilities, DescribeProcess and Execute operations. Operation
    endpoints are left empty for the service to fill in.

    Returns:
        The <wps:Capabilities> root element
    """
    caps = ET.Element(
        _wps("Capabilities"),
        {
            "service": SERVICE,
            "version": SERVICE_VERSION,
            "updateSequence": UPDATE_SEQUENCE,
            "{http://www.w3.org/XML/1998/namespace}lang": LANGUAGE,
        },
    )
    ET.SubElement(
        ET.SubElement(caps, _ows("ServiceIdentification")), _ows("ServiceType")
    ).text = SERVICE

    metadata = ET.SubElement(caps, _ows("OperationsMetadata"))
    _add_operation(metadata, GET_CAPABILITIES, ["Get"])
    _add_operation(metadata, DESCRIBE_PROCESS, ["Get"])
    _add_operation(metadata, EXECUTE, ["Get", "Post"])

    languages = ET.SubElement(caps, _wps("Languages"))
    ET.SubElement(ET.SubElement(languages, _wps("Default")), _ows("Language")).text = LANGUAGE
    ET.SubElement(ET.SubElement(languages, _wps("Supported")), _ows("Language")).text = LANGUAGE
    return caps
