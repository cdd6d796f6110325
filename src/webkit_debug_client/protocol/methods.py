"""Remote method names used by the client."""

from __future__ import annotations

from enum import Enum


class DebuggerMethod(str, Enum):
    """All remote methods the client issues."""

    # Debugger domain
    ENABLE = "Debugger.enable"
    SET_BREAKPOINT = "Debugger.setBreakpoint"
    REMOVE_BREAKPOINT = "Debugger.removeBreakpoint"
    STEP_OVER = "Debugger.stepOver"
    STEP_INTO = "Debugger.stepInto"
    STEP_OUT = "Debugger.stepOut"
    RESUME = "Debugger.resume"
    PAUSE = "Debugger.pause"
    EVALUATE_ON_CALL_FRAME = "Debugger.evaluateOnCallFrame"

    # Runtime domain
    GET_PROPERTIES = "Runtime.getProperties"
    EVALUATE = "Runtime.evaluate"


class DebuggerEvent(str, Enum):
    """Common events sent by the backend (not exhaustive)."""

    PAUSED = "Debugger.paused"
    RESUMED = "Debugger.resumed"
    SCRIPT_PARSED = "Debugger.scriptParsed"
    BREAKPOINT_RESOLVED = "Debugger.breakpointResolved"
