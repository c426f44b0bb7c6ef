"""Login and board pages with inline CSS and vanilla JS."""

_STYLE = """
  :root {
    --bg: #0d1117; --surface: #161b22; --border: #30363d;
    --text: #e6edf3; --text-muted: #8b949e; --text-dim: #6e7681;
    --putting-off: #f85149; --strategy: #58a6ff; --timely: #3fb950;
    --accent: #58a6ff;
  }
  * { margin: 0; padding: 0; box-sizing: border-box; }
  body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Helvetica, Arial, sans-serif;
         background: var(--bg); color: var(--text); line-height: 1.5; }
  .container { max-width: 1200px; margin: 0 auto; padding: 24px 16px; }
  header { display: flex; justify-content: space-between; align-items: center;
           padding-bottom: 16px; border-bottom: 1px solid var(--border); margin-bottom: 24px; }
  header h1 { font-size: 20px; font-weight: 600; }
  button, input { background: var(--surface); color: var(--text); border: 1px solid var(--border);
                  padding: 6px 12px; border-radius: 6px; font-size: 14px; }
  button { cursor: pointer; }
  button:hover { border-color: var(--text-muted); }
  .empty { text-align: center; padding: 48px; color: var(--text-muted); }
  .error { color: var(--putting-off); font-size: 13px; margin-top: 8px; min-height: 20px; }
"""


def get_login_html() -> str:
    return """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>Day Planner - Login</title>
<style>""" + _STYLE + """
  .login { max-width: 320px; margin: 120px auto; background: var(--surface);
           border: 1px solid var(--border); border-radius: 8px; padding: 24px; }
  .login h1 { font-size: 18px; margin-bottom: 16px; }
  .login input { width: 100%; margin-bottom: 12px; }
  .login button { width: 100%; }
</style>
</head>
<body>
<form class="login" id="login-form">
  <h1>Day Planner</h1>
  <input type="password" id="password" placeholder="Password" autofocus>
  <button type="submit">Sign in</button>
  <div class="error" id="error"></div>
</form>
<script>
document.getElementById('login-form').addEventListener('submit', async (e) => {
  e.preventDefault();
  const res = await fetch('/auth/login', {
    method: 'POST',
    headers: {'Content-Type': 'application/json'},
    body: JSON.stringify({password: document.getElementById('password').value}),
  });
  if (res.ok) { window.location.href = '/'; return; }
  const data = await res.json().catch(() => ({}));
  document.getElementById('error').textContent = data.error || 'Login failed';
});
</script>
</body>
</html>"""


def get_dashboard_html() -> str:
    return """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>Day Planner</title>
<style>""" + _STYLE + """
  .allocation { display: flex; gap: 12px; flex-wrap: wrap; margin-bottom: 24px; font-size: 13px;
                color: var(--text-muted); }
  .allocation span { background: var(--surface); border: 1px solid var(--border);
                     border-radius: 12px; padding: 2px 10px; }
  .row { background: var(--surface); border: 1px solid var(--border); border-radius: 8px;
         margin-bottom: 16px; }
  .row h2 { font-size: 15px; padding: 12px 16px; border-bottom: 1px solid var(--border);
            border-left: 4px solid var(--project-color, var(--accent)); }
  .columns { display: grid; grid-template-columns: repeat(3, 1fr); gap: 12px; padding: 12px; }
  .column { min-height: 80px; border: 1px dashed var(--border); border-radius: 6px; padding: 8px; }
  .column h3 { font-size: 12px; text-transform: uppercase; letter-spacing: 0.5px; margin-bottom: 8px; }
  .column.putting-off h3 { color: var(--putting-off); }
  .column.strategy h3 { color: var(--strategy); }
  .column.timely h3 { color: var(--timely); }
  .card { background: var(--bg); border: 1px solid var(--border); border-radius: 6px;
          padding: 8px 10px; margin-bottom: 6px; font-size: 13px; cursor: grab; }
  .card .actions { display: flex; gap: 6px; margin-top: 6px; }
  .card .actions button { font-size: 11px; padding: 2px 8px; }
  .card.active { border-color: var(--accent); }
  .timer { font-family: monospace; color: var(--accent); }
  .plan { background: var(--surface); border: 1px solid var(--border); border-radius: 8px;
          padding: 12px 16px; margin-bottom: 24px; }
  .plan[hidden] { display: none; }
  .plan label { display: flex; align-items: center; gap: 8px; font-size: 13px; margin-bottom: 6px; }
  .plan input[type=number] { width: 80px; }
  .plan .total { font-size: 13px; color: var(--text-muted); margin: 8px 0; }
  .plan .total.ok { color: var(--timely); }
</style>
</head>
<body>
<div class="container">
  <header>
    <h1>Day Planner</h1>
    <span><span class="timer" id="timer"></span> <button id="plan-toggle" onclick="togglePlan()">Plan day</button></span>
  </header>
  <form class="plan" id="plan-form" hidden onsubmit="savePlan(event)">
    <label>Hours <input type="number" id="plan-hours" min="1" max="24" step="0.5" value="8"></label>
    <div id="plan-projects"></div>
    <div class="total" id="plan-total"></div>
    <button type="submit" id="plan-save" disabled>Save plan</button>
  </form>
  <div class="allocation" id="allocation"></div>
  <div id="board"><div class="empty"><h3>Loading...</h3></div></div>
  <div class="error" id="error"></div>
</div>

<script>
const COLUMNS = [['putting-off', 'Putting off'], ['strategy', 'Strategy'], ['timely', 'Timely']];
const CATEGORY_LABELS = COLUMNS.map(c => '@' + c[0]);
const MAX_PROJECTS = 6;
let tasks = [];
let projects = [];
let timer = {task_id: null, elapsed_seconds: 0};

function today() { return new Date().toISOString().slice(0, 10); }

async function api(path, body) {
  const opts = body === undefined ? {} : {
    method: 'POST', headers: {'Content-Type': 'application/json'}, body: JSON.stringify(body),
  };
  const res = await fetch(path, opts);
  const data = await res.json().catch(() => ({}));
  if (!res.ok) throw new Error(data.error || res.statusText);
  return data;
}

function showError(msg) { document.getElementById('error').textContent = msg || ''; }

async function load() {
  try {
    const [alloc, proj, tsk] = await Promise.all([
      api('/allocations?date=' + today()), api('/todoist/projects'), api('/todoist/tasks'),
    ]);
    projects = proj.projects;
    tasks = tsk.tasks;
    renderAllocation(alloc.data);
    loadDraft(alloc.data);
    render(alloc.data);
    showError('');
  } catch (e) { showError(e.message); }
}

function renderAllocation(alloc) {
  const el = document.getElementById('allocation');
  if (!alloc) { el.innerHTML = '<span>No plan for today</span>'; return; }
  el.innerHTML = alloc.project_allocations.map(a =>
    `<span>${esc(a.project_name)}: ${a.percentage}% (${a.hours}h)</span>`).join('');
}

function render(alloc) {
  const ids = alloc ? alloc.project_allocations.map(a => a.project_id) : projects.map(p => p.id);
  const board = document.getElementById('board');
  board.innerHTML = ids.map(pid => {
    const p = projects.find(x => x.id === pid) || {name: pid, hex_color: ''};
    const rowTasks = tasks.filter(t => t.project_id === pid);
    return `<div class="row" style="--project-color:${p.hex_color}"><h2>${esc(p.name)}</h2>
      <div class="columns">${COLUMNS.map(([key, title]) => `
        <div class="column ${key}" data-column="${key}" ondragover="event.preventDefault()"
             ondrop="dropOnColumn(event, '${key}')"><h3>${title}</h3>
          ${rowTasks.filter(t => t.category === key).map(renderCard).join('')}
        </div>`).join('')}
      </div></div>`;
  }).join('') || '<div class="empty"><h3>No projects</h3></div>';
}

function renderCard(t) {
  const active = timer.task_id === t.id;
  return `<div class="card ${active ? 'active' : ''}" draggable="true"
      ondragstart="event.dataTransfer.setData('text/plain', '${t.id}')">
    ${esc(t.content)}
    <div class="actions">
      <button onclick="toggleTimer('${t.id}')">${active ? 'Stop' : 'Start'}</button>
      <button onclick="complete('${t.id}')">Complete</button>
    </div></div>`;
}

// Planning draft: selected project ids in order, percent per selected id.
let draft = {selected: [], percentages: {}};

function loadDraft(alloc) {
  draft = {selected: [], percentages: {}};
  if (alloc) {
    document.getElementById('plan-hours').value = alloc.total_work_hours;
    for (const a of alloc.project_allocations) {
      draft.selected.push(a.project_id);
      draft.percentages[a.project_id] = a.percentage;
    }
  }
  renderPlan();
}

function togglePlan() {
  const form = document.getElementById('plan-form');
  form.hidden = !form.hidden;
}

function toggleProject(pid) {
  if (draft.selected.includes(pid)) {
    draft.selected = draft.selected.filter(x => x !== pid);
    delete draft.percentages[pid];
  } else if (draft.selected.length < MAX_PROJECTS) {
    draft.selected.push(pid);
    draft.percentages[pid] = 0;
  }
  renderPlan();
}

function setPercentage(pid, value) {
  const pct = Math.max(0, Math.min(100, Number(value) || 0));
  draft.percentages[pid] = pct;
  renderPlanTotal();
}

function planTotal() {
  return Object.values(draft.percentages).reduce((a, b) => a + b, 0);
}

function renderPlan() {
  document.getElementById('plan-projects').innerHTML = projects.map(p => {
    const on = draft.selected.includes(p.id);
    const full = !on && draft.selected.length >= MAX_PROJECTS;
    return `<label><input type="checkbox" ${on ? 'checked' : ''} ${full ? 'disabled' : ''}
        onchange="toggleProject('${p.id}')"> ${esc(p.name)}
      ${on ? `<input type="number" min="0" max="100" value="${draft.percentages[p.id]}"
        oninput="setPercentage('${p.id}', this.value)"> %` : ''}</label>`;
  }).join('');
  renderPlanTotal();
}

function renderPlanTotal() {
  const total = planTotal();
  const ok = draft.selected.length > 0 && Math.abs(total - 100) < 1e-6;
  const el = document.getElementById('plan-total');
  el.textContent = `Total: ${total}% (${draft.selected.length}/${MAX_PROJECTS} projects)`;
  el.className = 'total' + (ok ? ' ok' : '');
  document.getElementById('plan-save').disabled = !ok;
}

async function savePlan(event) {
  event.preventDefault();
  const names = Object.fromEntries(projects.map(p => [p.id, p.name]));
  try {
    await api('/allocations', {
      date: today(),
      total_work_hours: Number(document.getElementById('plan-hours').value),
      project_allocations: draft.selected.map(pid => ({
        project_id: pid, project_name: names[pid] || 'Unknown', percentage: draft.percentages[pid],
      })),
    });
    document.getElementById('plan-form').hidden = true;
    await load();
  } catch (e) { showError('Failed to save plan. ' + e.message); }
}

async function dropOnColumn(event, column) {
  event.preventDefault();
  const id = event.dataTransfer.getData('text/plain');
  const task = tasks.find(t => t.id === id);
  if (!task || task.category === column) return;
  const before = {...task};
  const labels = task.labels.filter(l => !CATEGORY_LABELS.includes(l)).concat(['@' + column]);
  Object.assign(task, {labels, category: column});
  render(await currentAllocation());
  try {
    await api('/todoist/update-labels', {taskId: id, labels});
  } catch (e) {
    Object.assign(task, before);
    render(await currentAllocation());
    showError('Failed to update task labels. Please try again.');
  }
}

async function currentAllocation() {
  return (await api('/allocations?date=' + today())).data;
}

async function toggleTimer(id) {
  timer = timer.task_id === id ? await api('/timer/stop', {}) : await api('/timer/start', {taskId: id});
  render(await currentAllocation());
}

async function complete(id) {
  const state = await api('/timer');
  const suggested = state.task_id === id ? (Math.round(state.elapsed_seconds / 60) || 15) : 15;
  const minutes = prompt('Minutes spent (15, 30, 60 or any number):', suggested);
  if (minutes === null) return;
  const notes = prompt('Notes (optional):', '') || null;
  try {
    await api('/tasks/complete', {taskId: id, duration_minutes: parseInt(minutes, 10), notes, date: today()});
    await load();
  } catch (e) { showError('Failed to complete task. ' + e.message); }
}

async function tick() {
  try { timer = await api('/timer'); } catch (e) { return; }
  const s = timer.elapsed_seconds;
  document.getElementById('timer').textContent = timer.task_id
    ? `${Math.floor(s / 3600)}:${String(Math.floor(s / 60) % 60).padStart(2, '0')}:${String(s % 60).padStart(2, '0')}`
    : '';
}

function esc(s) {
  if (!s) return '';
  const d = document.createElement('div');
  d.textContent = s;
  return d.innerHTML;
}

load();
setInterval(tick, 1000);
</script>
</body>
</html>"""
