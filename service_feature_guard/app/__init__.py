"""
Feature Guard package.

Decides whether a requester may use one or more named feature flags and
records the per-flag outcome on the request for downstream logic. It
provides:

- app.flags: Flag record, identity, request context and option types.
- app.store: Flag storage contract with Redis and in-memory backends.
- app.guard: Access evaluator and the per-call guard controller.
- app.dependencies: FastAPI dependency factory binding the guard to routes.
- app.factory: Builds store and guard from configuration.

Guidelines:
- The guard is stateless; every evaluation re-reads the store.
- Unknown, disabled or malformed flags deny. Backend errors propagate.
- Admin bypass requires is_admin to be the boolean True, nothing else.
"""
