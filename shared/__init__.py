"""
Shared utilities for the attendance client.

This package aggregates common building blocks consumed by the client
package:

- config: Client configuration via pydantic-settings
- logging: Structured logging with session correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses

Do not import from attendance_client into shared/.
"""
