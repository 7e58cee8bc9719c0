"""GET handler that serves files, index pages and directory listings."""

from request import HTTPRequest
from resolver import DirectoryListing, DirectoryWithIndex, RegularFile, resolve
from response import (
    HTTPResponse,
    directory_listing_response,
    file_response,
    not_found_response,
    not_implemented_response,
)


def serve_path(request: HTTPRequest, root_directory: str) -> HTTPResponse:
    resource = resolve(root_directory, request.path)
    if isinstance(resource, RegularFile):
        return file_response(resource)
    if isinstance(resource, DirectoryWithIndex):
        return file_response(resource.index_file)
    if isinstance(resource, DirectoryListing):
        return directory_listing_response(resource, request.path)
    return not_found_response()


def handle_request(request: HTTPRequest, root_directory: str) -> HTTPResponse:
    if not request.is_get:
        return not_implemented_response()
    return serve_path(request, root_directory)
