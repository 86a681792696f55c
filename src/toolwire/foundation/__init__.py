"""Foundation layer: errors, configuration, data model, schemas and the registry."""
