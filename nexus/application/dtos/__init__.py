from nexus.application.dtos.emit_options import EmitMode, EmitOptions

__all__ = ["EmitMode", "EmitOptions"]
