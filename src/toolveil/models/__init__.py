from toolveil.models.tools import ToolDescriptor, ToolListResult

__all__ = ["ToolDescriptor", "ToolListResult"]
