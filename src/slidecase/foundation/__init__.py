"""Foundation layer: errors, configuration, tool abstraction and registry."""
