"""
HTTP surface of the embedded WPS.

Exposes the two servlet paths of the processing service and delegates
every request to a ProcessingService. The service is an opaque
collaborator; ConfiguredService is the default one, answering
GetCapabilities from the configuration document and reporting anything
else as an OWS exception.
"""

import logging
import xml.etree.ElementTree as ET
from typing import Callable, Mapping, NamedTuple, Optional, Protocol

from fastapi import FastAPI, Request, status
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool

from wps_commons.server.configuration import (
    GET_CAPABILITIES,
    LANGUAGE,
    OWS_NAMESPACE,
    SERVICE,
    SERVICE_VERSION,
    WPS_NAMESPACE,
    WPSConfiguration,
    create_capabilities_skeleton,
)

logger = logging.getLogger(__name__)

WEB_PROCESSING_SERVICE_PATH = "/WebProcessingService"
RETRIEVE_RESULT_SERVLET_PATH = "/RetrieveResultServlet"
XML_MEDIA_TYPE = "text/xml"


class ServiceResponse(NamedTuple):
    content: str
    media_type: str = XML_MEDIA_TYPE
    status_code: int = status.HTTP_200_OK


class ProcessingService(Protocol):
    """The process-execution service behind the HTTP endpoints."""

    def handle(self, params: Mapping[str, str], body: Optional[bytes]) -> ServiceResponse:
        ...

    def retrieve_result(self, result_id: Optional[str]) -> ServiceResponse:
        ...


ServiceFactory = Callable[[WPSConfiguration], ProcessingService]


class OWSException(Exception):
    """Error reported to clients as an OWS ExceptionReport."""

    def __init__(
        self,
        message: str,
        code: str = "NoApplicableCode",
        locator: Optional[str] = None,
        status_code: int = status.HTTP_400_BAD_REQUEST,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.locator = locator
        self.status_code = status_code

    def to_xml(self) -> str:
        report = ET.Element(
            f"{{{OWS_NAMESPACE}}}ExceptionReport",
            {
                "version": SERVICE_VERSION,
                "{http://www.w3.org/XML/1998/namespace}lang": LANGUAGE,
            },
        )
        attributes = {"exceptionCode": self.code}
        if self.locator:
            attributes["locator"] = self.locator
        exception = ET.SubElement(report, f"{{{OWS_NAMESPACE}}}Exception", attributes)
        ET.SubElement(exception, f"{{{OWS_NAMESPACE}}}ExceptionText").text = self.message
        return ET.tostring(report, encoding="unicode")

    def to_response(self) -> ServiceResponse:
        return ServiceResponse(self.to_xml(), XML_MEDIA_TYPE, self.status_code)


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


class ConfiguredService:
    """
    Minimal service answering from the configuration document.

    GetCapabilities lists every configured algorithm as a process
    offering. Process description and execution belong to the real
    processing service and are reported as unsupported.
    """

    def __init__(self, configuration: WPSConfiguration):
        self.configuration = configuration
        self._capabilities: Optional[str] = None
        self._cache = configuration.server_attribute("cacheCapabilites") == "true"

    def capabilities(self) -> str:
        if self._cache and self._capabilities is not None:
            return self._capabilities

        caps = create_capabilities_skeleton()
        offerings = ET.SubElement(caps, f"{{{WPS_NAMESPACE}}}ProcessOfferings")
        for algorithm in self.configuration.algorithms():
            process = ET.SubElement(
                offerings,
                f"{{{WPS_NAMESPACE}}}Process",
                {f"{{{WPS_NAMESPACE}}}processVersion": "1.0.0"},
            )
            ET.SubElement(process, f"{{{OWS_NAMESPACE}}}Identifier").text = algorithm
            ET.SubElement(process, f"{{{OWS_NAMESPACE}}}Title").text = algorithm.rsplit(".", 1)[-1]

        document = ET.tostring(caps, encoding="unicode")
        if self._cache:
            self._capabilities = document
        return document

    def _dispatch(self, operation: str) -> ServiceResponse:
        if operation == GET_CAPABILITIES:
            return ServiceResponse(self.capabilities())
        raise OWSException(
            f"Operation {operation} is not supported by this service",
            code="OperationNotSupported",
            locator=operation,
            status_code=status.HTTP_501_NOT_IMPLEMENTED,
        )

    def handle(self, params: Mapping[str, str], body: Optional[bytes]) -> ServiceResponse:
        try:
            if body:
                return self._handle_post(body)
            return self._handle_get(params)
        except OWSException as e:
            logger.info("WPS request rejected: %s (%s)", e.code, e.message)
            return e.to_response()

    def _handle_get(self, params: Mapping[str, str]) -> ServiceResponse:
        # KVP parameter names are case-insensitive
        kvp = {key.lower(): value for key, value in params.items()}
        service = kvp.get("service")
        if not service:
            raise OWSException(
                "Parameter 'service' is missing",
                code="MissingParameterValue",
                locator="service",
            )
        if service.upper() != SERVICE:
            raise OWSException(
                f"Unknown service {service}",
                code="InvalidParameterValue",
                locator="service",
            )
        operation = kvp.get("request")
        if not operation:
            raise OWSException(
                "Parameter 'request' is missing",
                code="MissingParameterValue",
                locator="request",
            )
        return self._dispatch(operation)

    def _handle_post(self, body: bytes) -> ServiceResponse:
        try:
            root = ET.fromstring(body)
        except ET.ParseError as e:
            raise OWSException(f"Could not parse request document: {e}") from e
        return self._dispatch(_local_name(root.tag))

    def retrieve_result(self, result_id: Optional[str]) -> ServiceResponse:
        if not result_id:
            return OWSException(
                "Parameter 'id' is missing",
                code="MissingParameterValue",
                locator="id",
            ).to_response()
        return OWSException(
            f"No stored result with id {result_id}",
            locator="id",
            status_code=status.HTTP_404_NOT_FOUND,
        ).to_response()


def _to_http(response: ServiceResponse) -> Response:
    return Response(
        content=response.content,
        media_type=response.media_type,
        status_code=response.status_code,
    )


def create_application(
    configuration: WPSConfiguration,
    service: Optional[ProcessingService] = None,
) -> FastAPI:
    """
    Create the FastAPI application for the embedded server.

    Args:
        configuration: Configuration document the service was built from
        service: Processing service; defaults to ConfiguredService

    Returns:
        Configured FastAPI application
    """
    if service is None:
        service = ConfiguredService(configuration)

    app = FastAPI(
        title="Web Processing Service",
        version=SERVICE_VERSION,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.configuration = configuration
    app.state.service = service

    @app.get(WEB_PROCESSING_SERVICE_PATH)
    async def web_processing_service_get(request: Request) -> Response:
        logger.debug("WPS GET %s", request.url.query)
        response = await run_in_threadpool(service.handle, dict(request.query_params), None)
        return _to_http(response)

    @app.post(WEB_PROCESSING_SERVICE_PATH)
    async def web_processing_service_post(request: Request) -> Response:
        body = await request.body()
        logger.debug("WPS POST (%d bytes)", len(body))
        if not body:
            return _to_http(
                OWSException("Empty request document", code="MissingParameterValue").to_response()
            )
        response = await run_in_threadpool(service.handle, dict(request.query_params), body)
        return _to_http(response)

    @app.get(RETRIEVE_RESULT_SERVLET_PATH)
    async def retrieve_result(request: Request) -> Response:
        response = await run_in_threadpool(
            service.retrieve_result, request.query_params.get("id")
        )
        return _to_http(response)

    logger.info(
        "Application configured with %d algorithms, %d parsers, %d generators",
        len(configuration.algorithms()),
        len(configuration.parsers()),
        len(configuration.generators()),
    )
    return app
