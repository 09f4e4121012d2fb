"""Target emitters.  Each ``emit(context, registry, ...)`` returns relative path -> file content."""
