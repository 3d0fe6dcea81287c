from voice_audit.live.events import LiveMessage, ToolCall, silence_event
from voice_audit.live.channel import ChannelFactory, LiveChannel, RealtimeChannel, connect_realtime, parse_server_event
from voice_audit.live.prompts import AUDIT_TOOLS, build_system_instruction

__all__ = [
    "LiveMessage",
    "ToolCall",
    "silence_event",
    "ChannelFactory",
    "LiveChannel",
    "RealtimeChannel",
    "connect_realtime",
    "parse_server_event",
    "AUDIT_TOOLS",
    "build_system_instruction",
]
