"""
Shared, cross-cutting code for the API and the batch tasks.

`core/` holds small building blocks that several features use
(DB wiring, settings, logging, third-party HTTP clients, slug/geo/image helpers).
Keep feature-specific SQL and business logic in the corresponding feature
package (e.g. `locations/`).
"""
