"""
Page-context JavaScript for the coordinate actions.

Every builder returns a single expression (an arrow-function IIFE), so the
same text can be run by Selenium as `return <expr>` and by Playwright's
page.evaluate. Coordinates are coerced to int and every string is embedded
through json.dumps; nothing user-supplied is concatenated raw.
"""

import json


READY_STATE = "document.readyState"

STEALTH = """(() => {
  Object.defineProperty(navigator, 'webdriver', {get: () => undefined});
  Object.defineProperty(navigator, 'plugins', {get: () => [1, 2, 3, 4, 5]});
  Object.defineProperty(navigator, 'languages', {get: () => ['en-US', 'en']});
  window.chrome = window.chrome || {runtime: {}};
  return true;
})()"""


def _js(value) -> str:
    return json.dumps(value)


def _marker(x: int, y: int) -> str:
    # Red dot that fades out; only emitted when highlighting is on.
    return (
        "(() => {"
        "const m = document.createElement('div');"
        "m.style.cssText = 'position:fixed;z-index:2147483647;pointer-events:none;"
        "width:16px;height:16px;border-radius:50%;background:rgba(255,0,0,0.6);"
        "border:2px solid #fff;transition:opacity 0.6s;';"
        f"m.style.left = ({int(x)} - 10) + 'px'; m.style.top = ({int(y)} - 10) + 'px';"
        "(document.body || document.documentElement).appendChild(m);"
        "setTimeout(() => { m.style.opacity = '0'; }, 400);"
        "setTimeout(() => { m.remove(); }, 1000);"
        "})();"
    )


def click(x: int, y: int, highlight: bool = False) -> str:
    x, y = int(x), int(y)
    return (
        "(() => {"
        + (_marker(x, y) if highlight else "")
        + f"const el = document.elementFromPoint({x}, {y});"
        "if (el) { el.click(); return el.tagName; }"
        "document.dispatchEvent(new MouseEvent('click', "
        f"{{bubbles: true, cancelable: true, view: window, clientX: {x}, clientY: {y}}}));"
        "return null;"
        "})()"
    )


def hover(x: int, y: int, highlight: bool = False) -> str:
    x, y = int(x), int(y)
    return (
        "(() => {"
        + (_marker(x, y) if highlight else "")
        + f"const target = document.elementFromPoint({x}, {y}) || document;"
        "for (const type of ['mouseenter', 'mouseover', 'mousemove']) {"
        "target.dispatchEvent(new MouseEvent(type, "
        f"{{bubbles: type !== 'mouseenter', cancelable: true, view: window, clientX: {x}, clientY: {y}}}));"
        "}"
        "return target === document ? null : target.tagName;"
        "})()"
    )


def focus_at(x: int, y: int) -> str:
    x, y = int(x), int(y)
    return (
        "(() => {"
        f"const el = document.elementFromPoint({x}, {y});"
        "if (!el) return null;"
        "el.click();"
        "if (typeof el.focus === 'function') el.focus();"
        "return el.tagName;"
        "})()"
    )


# Shared by clear and insert: write through the native value setter so
# framework-controlled inputs see the change.
_SET_VALUE = (
    "const setValue = (el, v) => {"
    "const proto = Object.getPrototypeOf(el);"
    "const desc = Object.getOwnPropertyDescriptor(proto, 'value');"
    "if (desc && desc.set) { desc.set.call(el, v); } else { el.value = v; }"
    "el.dispatchEvent(new Event('input', {bubbles: true}));"
    "el.dispatchEvent(new Event('change', {bubbles: true}));"
    "};"
)


def clear_active() -> str:
    return (
        "(() => {"
        + _SET_VALUE
        + "const el = document.activeElement;"
        "if (!el) return null;"
        "if (el.tagName === 'INPUT' || el.tagName === 'TEXTAREA') { setValue(el, ''); return 'input'; }"
        "if (el.isContentEditable) {"
        "const range = document.createRange();"
        "range.selectNodeContents(el);"
        "const sel = window.getSelection();"
        "sel.removeAllRanges(); sel.addRange(range);"
        "sel.deleteFromDocument();"
        "el.dispatchEvent(new Event('input', {bubbles: true}));"
        "return 'contenteditable';"
        "}"
        "return null;"
        "})()"
    )


def insert_text(text: str) -> str:
    return (
        "(() => {"
        + _SET_VALUE
        + f"const text = {_js(text)};"
        "const el = document.activeElement;"
        "if (el && (el.tagName === 'INPUT' || el.tagName === 'TEXTAREA')) {"
        "const v = el.value || '';"
        "let start = v.length, end = v.length;"
        "try {"
        "if (typeof el.selectionStart === 'number') { start = el.selectionStart; end = el.selectionEnd; }"
        "} catch (e) {}"
        "setValue(el, v.slice(0, start) + text + v.slice(end));"
        "try { el.setSelectionRange(start + text.length, start + text.length); } catch (e) {}"
        "return 'input';"
        "}"
        "if (el && el.isContentEditable) {"
        "const sel = window.getSelection();"
        "let range;"
        "if (sel.rangeCount && el.contains(sel.getRangeAt(0).commonAncestorContainer)) {"
        "range = sel.getRangeAt(0);"
        "} else {"
        "range = document.createRange(); range.selectNodeContents(el); range.collapse(false);"
        "}"
        "range.deleteContents();"
        "const node = document.createTextNode(text);"
        "range.insertNode(node);"
        "range.setStartAfter(node); range.collapse(true);"
        "sel.removeAllRanges(); sel.addRange(range);"
        "el.dispatchEvent(new InputEvent('input', {bubbles: true, inputType: 'insertText', data: text}));"
        "return 'contenteditable';"
        "}"
        "const target = el || document.body;"
        "for (const ch of text) {"
        "for (const type of ['keydown', 'keypress', 'keyup']) {"
        "target.dispatchEvent(new KeyboardEvent(type, {key: ch, bubbles: true, cancelable: true}));"
        "}"
        "}"
        "return 'keys';"
        "})()"
    )


def scroll_document(direction: str) -> str:
    deltas = {
        "up": "0, -window.innerHeight * 0.8",
        "down": "0, window.innerHeight * 0.8",
        "left": "-window.innerWidth * 0.5, 0",
        "right": "window.innerWidth * 0.5, 0",
    }
    return f"(() => {{ window.scrollBy({deltas[direction]}); return [window.scrollX, window.scrollY]; }})()"


def scroll_at(x: int, y: int, dx: int, dy: int) -> str:
    x, y, dx, dy = int(x), int(y), int(dx), int(dy)
    return (
        "(() => {"
        f"const el = document.elementFromPoint({x}, {y});"
        f"if (el) {{ el.scrollBy({dx}, {dy}); }} else {{ window.scrollBy({dx}, {dy}); }}"
        "return el ? el.tagName : null;"
        "})()"
    )


def drag_and_drop(x: int, y: int, dest_x: int, dest_y: int) -> str:
    x, y, dest_x, dest_y = int(x), int(y), int(dest_x), int(dest_y)
    return (
        "(() => {"
        f"const sx = {x}, sy = {y}, ex = {dest_x}, ey = {dest_y};"
        "const start = document.elementFromPoint(sx, sy) || document;"
        "const dt = new DataTransfer();"
        "const fire = (target, type, cx, cy) => target.dispatchEvent(new DragEvent(type, "
        "{bubbles: true, cancelable: true, dataTransfer: dt, clientX: cx, clientY: cy}));"
        "fire(start, 'dragstart', sx, sy);"
        "fire(start, 'drag', ex, ey);"
        "const end = document.elementFromPoint(ex, ey) || document;"
        "fire(end, 'dragenter', ex, ey);"
        "fire(end, 'dragover', ex, ey);"
        "fire(end, 'drop', ex, ey);"
        "fire(start, 'dragend', ex, ey);"
        "return true;"
        "})()"
    )


def key_event(key: str, ctrl: bool, shift: bool, alt: bool, meta: bool) -> str:
    """keydown then keyup for `key` on the focused element, with modifier flags."""
    init = (
        f"{{key: {_js(key)}, ctrlKey: {_js(bool(ctrl))}, shiftKey: {_js(bool(shift))}, "
        f"altKey: {_js(bool(alt))}, metaKey: {_js(bool(meta))}, bubbles: true, cancelable: true}}"
    )
    return (
        "(() => {"
        "const target = document.activeElement || document.body;"
        f"target.dispatchEvent(new KeyboardEvent('keydown', {init}));"
        f"target.dispatchEvent(new KeyboardEvent('keyup', {init}));"
        "return true;"
        "})()"
    )


__all__ = [
    "READY_STATE",
    "STEALTH",
    "click",
    "hover",
    "focus_at",
    "clear_active",
    "insert_text",
    "scroll_document",
    "scroll_at",
    "drag_and_drop",
    "key_event",
]
