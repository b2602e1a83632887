"""Test suite for the hydragraph data graph.

This package contains tests for the hydration graph, organized into the
following structure:

1. Store Tests (test_base.py)
   - Registration and validation
   - Node lookup
   - Lifecycle and subscriptions

2. Scheduler Tests (test_scheduler.py)
   - Propagation order
   - Concurrency and stale results
   - Queued nested mutations

3. Cache, Errors, Paths (test_cache.py, test_errors.py, test_paths.py)

4. State and Configuration (test_state.py, test_config.py)

5. Node Tests (nodes/)
   - Node definitions
   - Node handles
"""
