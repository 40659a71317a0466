"""JavaScript for Automation (JXA) sources run through ``osascript``.

Each script receives one JSON argument and prints one JSON object:
``{"ok": true, "result": ...}`` or ``{"ok": false, "kind": ..., "error": ...}``.
``kind`` is "missing_container" for an absent project/folder/tag,
"unavailable" when OmniFocus cannot be reached, and "script" otherwise.
"""

_PRELUDE = r"""
const app = Application("OmniFocus");

function ok(result) {
  return JSON.stringify({ ok: true, result: result });
}

function fail(kind, message) {
  return JSON.stringify({ ok: false, kind: kind, error: String(message) });
}

function missing(what, name) {
  const error = new Error(what + " not found: " + name);
  error.kind = "missing_container";
  return error;
}

function pad(n) {
  return (n < 10 ? "0" : "") + n;
}

function formatDate(d) {
  if (!d) return null;
  return d.getFullYear() + "-" + pad(d.getMonth() + 1) + "-" + pad(d.getDate());
}

function parseDate(text) {
  const parts = text.split("-").map(Number);
  return new Date(parts[0], parts[1] - 1, parts[2]);
}

function firstLine(text) {
  return (text || "").split(/\r?\n/)[0].trim();
}

function describe(item, kind) {
  return {
    id: item.id(),
    name: item.name(),
    note: item.note() || "",
    flagged: item.flagged(),
    completed: item.completed(),
    dueDate: formatDate(item.dueDate()),
    kind: kind
  };
}

// whose() name matching is case-insensitive; keep exact matches only
function byName(collection, name) {
  return collection.whose({ name: name })().filter(function (x) {
    return x.name() === name;
  });
}

function itemById(doc, id, kind) {
  return kind === "project" ? doc.flattenedProjects.byId(id) : doc.flattenedTasks.byId(id);
}

function run(argv) {
  let doc;
  try {
    doc = app.defaultDocument;
  } catch (e) {
    return fail("unavailable", e);
  }
  try {
    return ok(handle(doc, JSON.parse(argv[0] || "{}")));
  } catch (e) {
    if (e && e.kind) return fail(e.kind, e.message);
    return fail("script", e);
  }
}
"""

FIND_TASK = (
    _PRELUDE
    + r"""
function handle(doc, args) {
  if (args.mode === "scan") {
    const tasks = doc.flattenedTasks();
    for (let i = 0; i < tasks.length; i++) {
      if (tasks[i].name() === args.name) return describe(tasks[i], "task");
    }
    const projects = doc.flattenedProjects();
    for (let i = 0; i < projects.length; i++) {
      if (projects[i].name() === args.name) return describe(projects[i], "project");
    }
    return null;
  }
  if (args.project !== null) {
    const scope = byName(doc.flattenedProjects, args.project);
    if (scope.length === 0) throw missing("Project", args.project);
    const found = byName(scope[0].flattenedTasks, args.name);
    return found.length ? describe(found[0], "task") : null;
  }
  const tasks = byName(doc.flattenedTasks, args.name);
  if (tasks.length) return describe(tasks[0], "task");
  const projects = byName(doc.flattenedProjects, args.name);
  return projects.length ? describe(projects[0], "project") : null;
}
"""
)

CREATE_TASK = (
    _PRELUDE
    + r"""
function handle(doc, args) {
  const props = { name: args.name, note: args.note, flagged: args.flagged };
  if (args.dueDate) props.dueDate = parseDate(args.dueDate);

  let tag = null;
  if (args.tag !== null) {
    const tags = byName(doc.flattenedTags, args.tag);
    if (tags.length === 0) throw missing("Tag", args.tag);
    tag = tags[0];
  }

  const placement = args.placement;
  let item;
  let kind = "task";
  if (placement.kind === "inbox") {
    item = app.InboxTask(props);
    doc.inboxTasks.push(item);
  } else if (placement.kind === "project") {
    const projects = byName(doc.flattenedProjects, placement.project);
    if (projects.length === 0) throw missing("Project", placement.project);
    item = app.Task(props);
    projects[0].tasks.push(item);
  } else {
    const folders = byName(doc.flattenedFolders, placement.folder);
    if (folders.length === 0) throw missing("Folder", placement.folder);
    item = app.Project(props);
    folders[0].projects.push(item);
    kind = "project";
  }

  if (tag !== null) app.add(tag, { to: item.tags });
  return describe(item, kind);
}
"""
)

UPDATE_TASK = (
    _PRELUDE
    + r"""
function handle(doc, args) {
  const item = itemById(doc, args.id, args.kind);
  if (args.flagged !== null) item.flagged = args.flagged;
  if (args.completed === true && !item.completed()) app.markComplete(item);
  if (args.completed === false && item.completed()) app.markIncomplete(item);
  return describe(item, args.kind);
}
"""
)

LIST_OPEN_NOTES = (
    _PRELUDE
    + r"""
function handle(doc, args) {
  const result = [];
  const filter = { _and: [{ completed: false }, { note: { _contains: args.hostname } }] };
  const collect = function (items, kind) {
    const ids = items.id();
    const notes = items.note();
    for (let i = 0; i < ids.length; i++) {
      result.push({ id: ids[i], note: notes[i] || "", kind: kind });
    }
  };
  collect(doc.flattenedTasks.whose(filter), "task");
  collect(doc.flattenedProjects.whose(filter), "project");
  return result;
}
"""
)

RETIRE_TASK = (
    _PRELUDE
    + r"""
function handle(doc, args) {
  const matches = [];
  const collect = function (items, kind) {
    items.forEach(function (item) {
      if (firstLine(item.note()) === args.url) matches.push({ item: item, kind: kind });
    });
  };
  collect(doc.flattenedTasks.whose({ note: { _beginsWith: args.url } })(), "task");
  collect(doc.flattenedProjects.whose({ note: { _beginsWith: args.url } })(), "project");
  if (matches.length === 0) return null;

  let match = matches[0];
  for (let i = 0; i < matches.length; i++) {
    if (!matches[i].item.completed()) {
      match = matches[i];
      break;
    }
  }

  const info = describe(match.item, match.kind);
  if (args.action === "complete") {
    if (!info.completed) {
      app.markComplete(match.item);
      info.completed = true;
    }
  } else {
    app.delete(match.item);
  }
  return info;
}
"""
)
