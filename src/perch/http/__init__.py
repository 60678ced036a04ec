"""HTTP primitives: request, response, headers, cookies, query, writer."""
