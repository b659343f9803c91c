'''
Draws the ViewModel onto a ScreenBuffer. Nothing here keeps state between
frames; every tick redraws the whole screen from the model.

    ┌ DAX ✓ Ready • provider:model ─────────────────────┐   header
    ┌ Chat ──────────────────────────┐┌ Context ────────┐
    │▶ You                           ││Files            │   body (70/30)
    │   ...                          ││Scope            │
    ┌ Input ──────────────────────────────────────────────┐   input
'''
from typing import List, Optional, Sequence, Tuple
import textwrap

from wcwidth import wcswidth, wcwidth

from .region import Region
from .screen import ScreenBuffer, printable
from .state import GateState, Phase, Role, ToolState, ToolStatus, ViewModel
from .theme import DEFAULT_THEME, Theme

Span = Tuple[str, Optional[str], Optional[str]]  # (text, txt_color, style)
Line = List[Span]

HEADER_H = 3
INPUT_H = 6
INDENT = "   "
CARET = "▊"
OUTPUT_PREVIEW = 100

# values name Theme fields
PHASES = {
    Phase.THINKING: ("⟳ Thinking", 'accent'),
    Phase.REQUEST_SENT: ("⟳ Thinking", 'accent'),
    Phase.AWAITING_FIRST_TOKEN: ("◐ Waiting", 'warning'),
    Phase.STREAMING: ("▮ Streaming", 'success'),
    Phase.TOOL_EXECUTING: ("⚙ Tools", 'accent'),
    Phase.WAITING: ("⚠ Gate", 'warning'),
    Phase.ERROR: ("✕ Error", 'error'),
    Phase.IDLE: ("✓ Ready", 'dim'),
    Phase.DONE: ("✓ Ready", 'dim'),
}
READY = ("✓ Ready", 'dim')

TOOL_ICONS = {
    ToolStatus.RUNNING: ("◐", 'warning'),
    ToolStatus.SUCCESS: ("✓", 'success'),
    ToolStatus.ERROR: ("✕", 'error'),
}

ROLES = {
    Role.USER: ("You", 'user'),
    Role.ASSISTANT: ("DAX", 'assistant'),
}


def phase_indicator(phase: Phase, theme: Theme = DEFAULT_THEME) -> Tuple[str, str]:
    label, color = PHASES.get(phase, READY)
    return label, getattr(theme, color)


def provider_info(model: ViewModel) -> str:
    if model.provider and model.model:
        return f" • {model.provider}:{model.model}"
    if model.provider:
        return f" • {model.provider}"
    return ""


def split_cells(text: str, width: int) -> List[str]:
    """Cuts `text` into pieces at most `width` terminal cells wide."""
    width = max(1, width)
    out, cur, cur_w = [], '', 0
    for c in text:
        cw = max(0, wcwidth(c))
        if cur and cur_w + cw > width:
            out.append(cur)
            cur, cur_w = '', 0
        cur += c
        cur_w += cw
    out.append(cur)
    return out


def wrap(text: str, width: int) -> List[str]:
    width = max(1, width)
    out = []
    for raw in text.replace('\r\n', '\n').replace('\r', '\n').split('\n'):
        for piece in textwrap.wrap(printable(raw), width, break_on_hyphens=False) or ['']:
            # textwrap counts code points; wide characters need a second cut
            out.extend(split_cells(piece, width) if wcswidth(piece) > width else [piece])
    return out


def _clip(text: str, width: int) -> str:
    width = max(1, width)
    text = printable(text)
    return text if wcswidth(text) <= width else split_cells(text, width - 1)[0] + "…"


def draw_line(buf: ScreenBuffer, x: int, y: int, line: Line, max_w: int):
    col = 0
    for text, color, style in line:
        col += buf.puts(x + col, y, text, style, color, max_w=max_w - col)


#====================================
# chat pane
#====================================


def tool_lines(tool: ToolState, width: int, theme: Theme) -> List[Line]:
    icon, color = TOOL_ICONS[tool.status]
    line: Line = [(INDENT, None, None), (f"{icon} {tool.name}", getattr(theme, color), 'bold')]
    if tool.elapsed_ms is not None:
        line.append((f" {tool.elapsed_ms}ms", theme.dim, None))
    out = [line]
    if tool.output and tool.output.strip():
        first = tool.output.strip().splitlines()[0][:OUTPUT_PREVIEW]
        out.append([(INDENT + "  " + _clip(first, width - len(INDENT) - 2), theme.dim, None)])
    return out


def chat_lines(model: ViewModel, width: int, theme: Theme = DEFAULT_THEME) -> Tuple[List[Line], List[int]]:
    """Returns the chat pane lines and the first line index of each message."""
    lines: List[Line] = []
    anchors: List[int] = []
    body_w = width - len(INDENT)

    for i, msg in enumerate(model.transcript):
        anchors.append(len(lines))
        label, color = ROLES[msg.role]
        marker = "▶" if i == model.scroll_position else "▸"
        lines.append([(marker, theme.accent, 'bold'), (f" {label} ", getattr(theme, color), 'bold')])
        if msg.content:
            lines.extend([(INDENT + l, theme.text, None)] for l in wrap(msg.content, body_w))
        if msg.tools:
            lines.append([])
            for tool in msg.tools:
                lines.extend(tool_lines(tool, width, theme))
        lines.append([])

    if model.streaming_buffer:
        lines.append([("▸ ", theme.assistant, 'bold'), ("DAX ", theme.assistant, 'bold')])
        lines.extend([(INDENT + l, theme.text, None)] for l in wrap(model.streaming_buffer, body_w))
    if model.active_tool:
        lines.append([(f"{INDENT}◐ running: {model.active_tool}", theme.warning, None)])

    return lines, anchors


def chat_offset(anchors: Sequence[int], total: int, height: int, focused: int) -> int:
    """
    First visible line. The newest message follows the bottom of the pane,
    an older focused message is pinned to the top.
    """
    if total <= height:
        return 0
    max_off = total - height
    if not anchors or focused >= len(anchors) - 1:
        return max_off
    return min(anchors[max(focused, 0)], max_off)


def render_scrollbar(buf: ScreenBuffer, r: Region, offset: int, total: int, theme: Theme):
    x, y, _, h = r
    if h <= 0: return
    buf.vline(r, '│', txt_color=theme.border)
    thumb = max(1, h * h // total)
    max_off = max(1, total - h)
    top = (h - thumb) * offset // max_off
    buf.vline((x, y + top, 1, thumb), '█', txt_color=theme.accent)


def render_chat(buf: ScreenBuffer, model: ViewModel, r: Region, theme: Theme):
    buf.rect_line(r, txt_color=theme.border, title=" Chat ", title_color=theme.dim)
    area = r.shrink(1)
    if area.w < 2 or area.h < 1: return

    text_w = area.w - 1  # rightmost column is the scroll indicator
    lines, anchors = chat_lines(model, text_w, theme)
    offset = chat_offset(anchors, len(lines), area.h, model.scroll_position)
    for row, line in enumerate(lines[offset:offset + area.h]):
        draw_line(buf, area.x, area.y + row, line, text_w)
    if len(lines) > area.h:
        render_scrollbar(buf, Region(area.x + area.w - 1, area.y, 1, area.h), offset, len(lines), theme)


#====================================
# sidebar, header, input
#====================================


def render_list(buf: ScreenBuffer, r: Region, title: str, items: Sequence[str], placeholder: str, theme: Theme):
    x, y, w, h = r
    if h < 1: return
    buf.puts(x, y, title, 'bold', theme.accent, max_w=w)
    room = h - 1
    if not items:
        if room > 0:
            buf.puts(x, y + 1, placeholder, None, theme.dim, max_w=w)
        return
    shown = list(items) if len(items) <= room else list(items[:max(0, room - 1)])
    for i, item in enumerate(shown):
        buf.puts(x, y + 1 + i, _clip(item, w), None, theme.text, max_w=w)
    if len(shown) < len(items) and room > 0:
        buf.puts(x, y + 1 + len(shown), f"+{len(items) - len(shown)} more", None, theme.dim, max_w=w)


def gate_lines(gate: GateState, theme: Theme) -> List[Line]:
    title = "⚠ Gate" + (f" {gate.id}" if gate.id else "")
    out: List[Line] = [[(title, theme.warning, 'bold')]]
    if gate.blocked:
        out.append([("blocked", theme.error, None)])
    else:
        out.append([("awaiting approval", theme.dim, None)])
    for w in gate.warnings:
        out.append([("• ", theme.warning, None), (f"{w.code}: {w.subject}", theme.text, None)])
    return out


def render_sidebar(buf: ScreenBuffer, model: ViewModel, r: Region, theme: Theme):
    buf.rect_line(r, txt_color=theme.border, title=" Context ", title_color=theme.dim)
    inner = r.shrink(1)
    if model.gate is not None and model.stream_phase is Phase.WAITING:
        lines = gate_lines(model.gate, theme)
        gate_r, inner = inner.take_top(min(len(lines) + 1, inner.h // 2))
        for row, line in enumerate(lines[:gate_r.h]):
            draw_line(buf, gate_r.x, gate_r.y + row, line, gate_r.w)
    files_r, scope_r = inner.split_vertical(1, 1)
    render_list(buf, files_r, "Files", model.context_files, "No files loaded", theme)
    render_list(buf, scope_r, "Scope", model.context_scope, "No scope defined", theme)


def render_header(buf: ScreenBuffer, model: ViewModel, r: Region, theme: Theme):
    label, color = phase_indicator(model.stream_phase, theme)
    title = f"  DAX {label} {provider_info(model)} "
    buf.rect_line(r, txt_color=theme.border, title=title, title_style='bold', title_color=color)


def render_input(buf: ScreenBuffer, model: ViewModel, r: Region, theme: Theme):
    buf.rect_line(r, txt_color=theme.accent, title=" Input ", title_color=theme.dim)
    x, y, w, h = r.shrink(1)
    if w < 1 or h < 1: return
    # the caret only marks an empty buffer; there is no cursor position
    rows = split_cells(printable(model.input_buffer) or CARET, w)
    for row, chunk in enumerate(rows[-h:]):
        buf.puts(x, y + row, chunk, None, theme.text, max_w=w)


def render(buf: ScreenBuffer, model: ViewModel, theme: Theme = DEFAULT_THEME):
    buf.clear()
    screen = Region(0, 0, buf.w, buf.h)
    header_r, rest = screen.take_top(HEADER_H)
    body_r, input_r = rest.take_bottom(INPUT_H)
    chat_r, side_r = body_r.split_horizontal(7, 3)

    render_header(buf, model, header_r, theme)
    render_chat(buf, model, chat_r, theme)
    render_sidebar(buf, model, side_r, theme)
    render_input(buf, model, input_r, theme)
