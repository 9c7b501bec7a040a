"""HTTP middleware: request context binding and the outermost error catch-all."""
