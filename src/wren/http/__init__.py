"""HTTP primitives: request, response writer, headers, query, cookies."""
