from stratex_core.transport.rest import RestClient, RestResponse

__all__ = ["RestClient", "RestResponse"]
