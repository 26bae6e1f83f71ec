"""
In-page scripts injected by the interactive recorder.

RESOLVER_JS mirrors selector_resolver.SelectorResolver so selectors are
computed against the live DOM at the moment of the interaction.
RECORDER_INIT_SCRIPT adds the DOM listeners and the floating control
panel; it talks to the host only through the exposed bridge functions
recordAction, getRecordingState, controlAction and getExistingScenarios.
"""

UI_ID = "pagecraft-recorder-ui"

RESOLVER_JS = r"""
const TEST_ID_ATTRIBUTES = ['data-testid', 'data-test-id', 'data-test', 'data-cy'];
const CLICKABLE_SELECTOR = 'button, a, [role="button"], [role="link"], [type="button"], [type="submit"]';
const MAX_TEXT_LENGTH = 30;

const pcIsUnique = (sel) => {
    try { return document.querySelectorAll(sel).length === 1; } catch (e) { return false; }
};
const pcQuote = (value) => '"' + String(value).replace(/\\/g, '\\\\').replace(/"/g, '\\"') + '"';
const pcNormalize = (text) => (text || '').replace(/\s+/g, ' ').trim();
const pcOwnText = (el) => pcNormalize(
    Array.from(el.childNodes).filter(n => n.nodeType === 3).map(n => n.textContent).join('')
);

function pcElementsWithText(text) {
    const wanted = pcNormalize(text).toLowerCase();
    return Array.from(document.querySelectorAll('*')).filter(el => pcOwnText(el).toLowerCase() === wanted);
}

function pcResolveSelector(target) {
    for (const attr of TEST_ID_ATTRIBUTES) {
        const testId = target.getAttribute(attr);
        if (testId) {
            const sel = `[${attr}=${pcQuote(testId)}]`;
            if (pcIsUnique(sel)) return { type: 'Data-testid', value: sel };
        }
    }

    if (target.id) {
        const sel = `#${CSS.escape(target.id)}`;
        if (pcIsUnique(sel)) return { type: 'ID', value: sel };
    }

    for (const [attr, type] of [['name', 'Name'], ['role', 'Role']]) {
        const attrValue = target.getAttribute(attr);
        if (attrValue) {
            const sel = `[${attr}=${pcQuote(attrValue)}]`;
            if (pcIsUnique(sel)) return { type: type, value: sel };
        }
    }

    if (target.classList && target.classList.length > 0) {
        const classes = Array.from(target.classList).filter(c => c && !c.includes(':'));
        if (classes.length > 0) {
            const sel = '.' + classes.map(c => CSS.escape(c)).join('.');
            if (pcIsUnique(sel)) return { type: 'CSS', value: sel };
        }
    }

    const text = pcNormalize(target.innerText);
    if (text && text.length < MAX_TEXT_LENGTH) {
        const matches = pcElementsWithText(text);
        if (matches.length === 1 && matches[0] === target) {
            return { type: 'Text', value: `text=${pcQuote(text)}` };
        }
    }

    const path = [];
    let current = target;
    while (current && current.nodeType === 1 && current.tagName !== 'HTML') {
        let segment = current.tagName.toLowerCase();
        if (current.id) {
            path.unshift(`${segment}#${CSS.escape(current.id)}`);
            break;
        }
        let nth = 1;
        let sibling = current;
        while ((sibling = sibling.previousElementSibling)) {
            if (sibling.tagName === current.tagName) nth++;
        }
        if (nth !== 1) segment += `:nth-of-type(${nth})`;
        path.unshift(segment);
        current = current.parentElement;

        const fullPath = path.join(' > ');
        if (pcIsUnique(fullPath)) return { type: 'Path', value: fullPath };
    }

    if (path.length > 0) return { type: 'Path', value: path.join(' > ') };
    return { type: 'Tag', value: target.tagName.toLowerCase() };
}
"""

RECORDER_INIT_SCRIPT = r"""
(() => {
if (window.__pagecraftRecorderInstalled) return;
window.__pagecraftRecorderInstalled = true;

const UI_ID = '__UI_ID__';
const DRAG_THRESHOLD = 10;
__RESOLVER_JS__
window.__pagecraftResolve = pcResolveSelector;

const bridge = (name, arg) => {
    const fn = window[name];
    if (typeof fn !== 'function') return Promise.resolve(null);
    return (arg === undefined ? fn() : fn(arg)).catch(() => null);
};

function isUiElement(el) {
    return !!(el && el.closest && el.closest('#' + UI_ID));
}

function elementText(el) {
    if (el.tagName === 'INPUT' || el.tagName === 'TEXTAREA') return el.value || '';
    return el.innerText ? el.innerText.trim() : '';
}

// ---------- Page listeners ----------

function setupListeners() {
    document.addEventListener('click', (e) => {
        let target = e.target;
        if (!(target instanceof Element) || isUiElement(target)) return;

        const clickable = target.closest(CLICKABLE_SELECTOR);
        if (clickable && !isUiElement(clickable)) target = clickable;

        const sel = pcResolveSelector(target);
        if (e.shiftKey) {
            e.preventDefault();
            e.stopPropagation();
            bridge('recordAction', { type: 'assert', selectorType: sel.type, selector: sel.value, value: elementText(target) });
        } else {
            bridge('recordAction', { type: 'click', selectorType: sel.type, selector: sel.value });
        }
    }, true);

    document.addEventListener('change', (e) => {
        const target = e.target;
        if (!(target instanceof Element) || isUiElement(target)) return;
        const sel = pcResolveSelector(target);
        bridge('recordAction', { type: 'input', selectorType: sel.type, selector: sel.value, value: target.value });
    }, true);

    let downX = 0, downY = 0, downTarget = null;

    document.addEventListener('mousedown', (e) => {
        if (isUiElement(e.target)) { downTarget = null; return; }
        downX = e.clientX;
        downY = e.clientY;
        downTarget = e.target;
    }, true);

    document.addEventListener('mouseup', (e) => {
        const source = downTarget;
        downTarget = null;
        if (!source || isUiElement(e.target)) return;

        const distance = Math.hypot(e.clientX - downX, e.clientY - downY);
        if (distance <= DRAG_THRESHOLD) return;

        const selection = window.getSelection();
        const selectedText = selection ? selection.toString().trim() : '';
        if (selectedText) {
            let anchor = selection.anchorNode;
            while (anchor && anchor.nodeType !== 1) anchor = anchor.parentNode;
            if (anchor && !isUiElement(anchor)) {
                const sel = pcResolveSelector(anchor);
                bridge('recordAction', { type: 'drag-select', selectorType: sel.type, selector: sel.value, value: selectedText });
            }
            return;
        }

        const drop = e.target;
        if (drop instanceof Element && source instanceof Element &&
            drop !== source && !source.contains(drop) && !drop.contains(source)) {
            const from = pcResolveSelector(source);
            const to = pcResolveSelector(drop);
            bridge('recordAction', { type: 'drag-drop', selectorType: from.type, selector: from.value, value: to.value });
        }
    }, true);
}

// ---------- Control panel ----------

const STYLE = `
#${UI_ID}-container { position: fixed; top: 10px; right: 20px; width: 340px; z-index: 2147483647;
  background: #1e1e1e; color: #eee; border: 1px solid #444; border-radius: 8px;
  font: 12px 'Segoe UI', Tahoma, sans-serif; box-shadow: 0 4px 20px rgba(0,0,0,.6); }
#${UI_ID}-header { display: flex; justify-content: space-between; align-items: center;
  padding: 10px 12px; background: #2d2d2d; border-radius: 8px 8px 0 0; cursor: move; user-select: none; }
#${UI_ID}-dot { display: inline-block; width: 10px; height: 10px; border-radius: 50%; background: #555; margin-right: 6px; }
#${UI_ID}-dot.recording { background: #ff5252; }
#${UI_ID}-controls { padding: 10px 12px; display: flex; flex-direction: column; gap: 8px; }
.${UI_ID}-row { display: flex; gap: 6px; }
.${UI_ID}-btn { flex: 1; padding: 6px; border: none; border-radius: 4px; color: #fff; cursor: pointer;
  font-weight: bold; text-transform: uppercase; background: #333; }
.${UI_ID}-input { width: 100%; box-sizing: border-box; padding: 5px; background: #111; color: #ddd;
  border: 1px solid #555; border-radius: 3px; font-family: monospace; font-size: 11px; }
#${UI_ID}-steps { max-height: 260px; overflow-y: auto; padding: 8px 12px; display: flex; flex-direction: column; gap: 6px; }
.${UI_ID}-step { background: #2d2d2d; border: 1px solid #444; border-radius: 4px; padding: 6px; }
.${UI_ID}-step-head { display: flex; justify-content: space-between; margin-bottom: 4px; font-weight: bold; text-transform: uppercase; }
.collapsed #${UI_ID}-steps-wrapper { display: none; }
`;

function createUI() {
    if (document.getElementById(UI_ID) || !document.body) return;

    const wrapper = document.createElement('div');
    wrapper.id = UI_ID;
    wrapper.innerHTML = `
        <style>${STYLE}</style>
        <div id="${UI_ID}-container">
            <div id="${UI_ID}-header">
                <span><span id="${UI_ID}-dot"></span>Agent Recorder</span>
                <button id="${UI_ID}-reset" class="${UI_ID}-btn" style="flex:none" title="Reset recording and reload">Reset</button>
            </div>
            <div id="${UI_ID}-controls">
                <input id="${UI_ID}-name" class="${UI_ID}-input" placeholder="Feature Name" />
                <div class="${UI_ID}-row">
                    <button id="${UI_ID}-start" class="${UI_ID}-btn" style="background:#4caf50">Record</button>
                    <button id="${UI_ID}-stop" class="${UI_ID}-btn" style="background:#ff9800">Pause</button>
                    <button id="${UI_ID}-generate" class="${UI_ID}-btn" style="background:#2196f3">Generate</button>
                </div>
                <button id="${UI_ID}-toggle" class="${UI_ID}-btn">Hide Steps</button>
            </div>
            <div id="${UI_ID}-steps-wrapper">
                <div class="${UI_ID}-row" style="padding: 0 12px">
                    <select id="${UI_ID}-import-list" class="${UI_ID}-input"></select>
                    <button id="${UI_ID}-import" class="${UI_ID}-btn" style="flex:none">Import</button>
                    <button id="${UI_ID}-add" class="${UI_ID}-btn" style="flex:none">+ Step</button>
                </div>
                <div id="${UI_ID}-steps"></div>
            </div>
        </div>`;
    document.body.appendChild(wrapper);

    const byId = (suffix) => document.getElementById(`${UI_ID}-${suffix}`);
    const control = (type, payload) => bridge('controlAction', { type: type, payload: payload });

    window.updateRecorderUI = async () => {
        const state = await bridge('getRecordingState');
        if (state) renderUI(state);
    };

    let scenarios = [];
    bridge('getExistingScenarios').then((found) => {
        scenarios = found || [];
        const list = byId('import-list');
        scenarios.forEach((scenario, index) => {
            const option = document.createElement('option');
            option.value = String(index);
            option.textContent = `${scenario.file}: ${scenario.name} (${scenario.steps.length})`;
            list.appendChild(option);
        });
    });

    byId('start').addEventListener('click', () => control('start', byId('name').value));
    byId('stop').addEventListener('click', () => control('stop'));
    byId('generate').addEventListener('click', () => control('generate'));
    byId('toggle').addEventListener('click', () => control('toggleExpand'));
    byId('add').addEventListener('click', () => control('addManualEvent', {}));
    byId('name').addEventListener('change', (e) => control('updateName', e.target.value));
    byId('reset').addEventListener('click', () => {
        if (confirm('Reset all steps and reload the page?')) control('reset');
    });
    byId('import').addEventListener('click', () => {
        const scenario = scenarios[Number(byId('import-list').value)];
        if (scenario) control('importSteps', scenario.steps);
    });

    let dragging = false, startX = 0, startY = 0, left = 0, top = 0;
    byId('header').addEventListener('mousedown', (e) => {
        const rect = byId('container').getBoundingClientRect();
        dragging = true;
        startX = e.clientX; startY = e.clientY; left = rect.left; top = rect.top;
        e.preventDefault();
    });
    document.addEventListener('mousemove', (e) => {
        if (!dragging) return;
        const container = byId('container');
        container.style.right = 'auto';
        container.style.left = `${left + e.clientX - startX}px`;
        container.style.top = `${top + e.clientY - startY}px`;
    });
    document.addEventListener('mouseup', () => { dragging = false; });

    window.updateRecorderUI();
}

function renderUI(state) {
    const container = document.getElementById(`${UI_ID}-container`);
    const steps = document.getElementById(`${UI_ID}-steps`);
    const nameInput = document.getElementById(`${UI_ID}-name`);
    if (!container || !steps || !nameInput) return;

    container.classList.toggle('collapsed', !state.isExpanded);
    document.getElementById(`${UI_ID}-toggle`).innerText = state.isExpanded ? 'Hide Steps' : 'Show Steps';
    document.getElementById(`${UI_ID}-dot`).classList.toggle('recording', state.state === 'recording');
    if (document.activeElement !== nameInput) nameInput.value = state.featureName || '';

    steps.innerHTML = '';
    if (!state.events.length) {
        steps.innerHTML = '<div style="color:#666;text-align:center;padding:16px 0">No steps recorded yet.</div>';
        return;
    }

    const field = (ev, name, label) => {
        const row = document.createElement('div');
        row.className = `${UI_ID}-row`;
        const caption = document.createElement('span');
        caption.style.cssText = 'width:60px;color:#888;font-size:10px';
        caption.textContent = label;
        const input = document.createElement('input');
        input.className = `${UI_ID}-input`;
        input.value = ev[name] || '';
        input.addEventListener('change', () => bridge('controlAction', {
            type: 'updateEvent', payload: { id: ev.id, field: name, value: input.value }
        }));
        row.append(caption, input);
        return row;
    };

    state.events.forEach((ev, index) => {
        const item = document.createElement('div');
        item.className = `${UI_ID}-step`;

        const head = document.createElement('div');
        head.className = `${UI_ID}-step-head`;
        head.textContent = `${index + 1}. ${ev.type}`;
        const remove = document.createElement('button');
        remove.className = `${UI_ID}-btn`;
        remove.style.flex = 'none';
        remove.textContent = 'x';
        remove.addEventListener('click', () => bridge('controlAction', { type: 'deleteEvent', payload: ev.id }));
        head.appendChild(remove);
        item.appendChild(head);

        if (ev.type === 'navigation' || ev.type === 'url-change') {
            item.appendChild(field(ev, 'url', 'URL'));
        } else if (ev.type === 'imported') {
            item.appendChild(field(ev, 'value', 'Title'));
        } else {
            item.appendChild(field(ev, 'selector', ev.selectorType || 'CSS'));
            if (['input', 'manual', 'assert', 'drag-select', 'drag-drop'].includes(ev.type)) {
                item.appendChild(field(ev, 'value', ev.type === 'drag-drop' ? 'Target' : 'Value'));
            }
            item.appendChild(field(ev, 'locatorId', 'Locator id'));
        }
        steps.appendChild(item);
    });
}

const init = () => { createUI(); setupListeners(); };
if (document.readyState === 'loading') {
    document.addEventListener('DOMContentLoaded', init);
} else {
    init();
}
})();
""".replace("__UI_ID__", UI_ID).replace("__RESOLVER_JS__", RESOLVER_JS)

SYNC_UI_SCRIPT = "window.updateRecorderUI ? window.updateRecorderUI() : null"
