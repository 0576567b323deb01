"""Bridge batch pipeline: compose, simulate, submit, reconcile."""
