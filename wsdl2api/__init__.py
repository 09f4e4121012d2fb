"""Project WSDL services into Python, OpenAPI and TypeScript clients.

Also hosts the REST bridge that forwards JSON calls to the SOAP endpoint.
"""

__version__ = "0.1.0"
