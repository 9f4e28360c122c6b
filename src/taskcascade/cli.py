"""
Command Line Interface for taskcascade.
"""

import click
from pathlib import Path
from .version import VERSION
from .data import TaskService, TaskStore
from .hierarchy import TreeIndex, get_dependency_counts
from .models import Task, TaskStatus
from .recovery import TaskCascadeError

STATUS_ICONS = {
    TaskStatus.IN_PROGRESS.value: "🔄",
    TaskStatus.DONE.value: "☑️ ",
    TaskStatus.COMPLETE.value: "✅",
}


def _fail(error: Exception):
    click.echo(f"❌ {error}")
    raise click.exceptions.Exit(1)


def _service(ctx: click.Context) -> TaskService:
    return ctx.obj


def _format_task(task: Task, counts=None) -> str:
    icon = STATUS_ICONS.get(task.status, "•")
    line = f"{icon} [{task.id}] {task.header} ({task.status})"
    if counts is not None and counts.total:
        line += f"  deps: {counts.complete} complete, {counts.done} done, {counts.total} total"
    return line


def _echo_tree(index: TreeIndex, task: Task, level: int = 0):
    click.echo("   " * level + _format_task(task, get_dependency_counts(index, task.id)))
    for child in index.children_of(task.id):
        _echo_tree(index, child, level + 1)


def _echo_changes(changed):
    for task in changed:
        click.echo(f"   {_format_task(task)}")


@click.group()
@click.version_option(version=VERSION, prog_name="taskcascade")
@click.option('--data-dir', type=click.Path(file_okay=False, path_type=Path), default=None,
              help='Directory holding tasks.yml (default: $TASKCASCADE_DATA_DIR or ./.taskcascade)')
@click.pass_context
def main(ctx, data_dir):
    """
    taskcascade - hierarchical tasks with cascading completion status.
    """
    ctx.obj = TaskService(TaskStore.from_data_dir(data_dir))


@main.command()
@click.pass_context
def init(ctx):
    """Initialize a task file in the data directory."""
    store = _service(ctx).store
    if store.exists:
        click.echo(f"❌ Already initialized ({store.path} exists)")
        return
    try:
        path = store.initialize()
    except TaskCascadeError as e:
        _fail(e)
    click.echo(f"📋 Created {path}")


@main.command(name="list")
@click.option('--page', type=int, default=None, help='Page of root tasks to show')
@click.option('--limit', type=int, default=10, help='Root tasks per page (default: 10)')
@click.pass_context
def list_tasks(ctx, page, limit):
    """Show the task tree."""
    service = _service(ctx)
    try:
        index = TreeIndex(service.list_tasks())
        if page is not None:
            result = service.list_root_tasks(page, limit)
            roots = result.tasks
        else:
            result = None
            roots = [t for t in index.tasks if t.parent_id is None or not index.exists(t.parent_id)]
    except TaskCascadeError as e:
        _fail(e)

    if not roots:
        click.echo("📭 No tasks found")
        return

    for root in roots:
        _echo_tree(index, root)

    if result is not None:
        click.echo("")
        click.echo(f"📄 Page {result.page}/{max(result.total_pages, 1)} ({result.total} root tasks)")


@main.command()
@click.argument('task_id', type=int)
@click.pass_context
def show(ctx, task_id):
    """Show one task with its ancestors, children and dependency counts."""
    try:
        details = _service(ctx).describe(task_id)
    except TaskCascadeError as e:
        _fail(e)

    task = details["task"]
    click.echo(_format_task(task, details["counts"]))
    click.echo(f"   🏷️  Type: {task.type}")
    click.echo(f"   👤 Reviewer: {task.reviewer}")
    click.echo(f"   🎯 Target: {task.target}  Limit: {task.limit}")
    if details["ancestors"]:
        path = " > ".join(f"[{a.id}] {a.header}" for a in reversed(details["ancestors"]))
        click.echo(f"   📍 Parents: {path}")
    top = details["ancestors"][-1] if details["ancestors"] else task
    known_ids = {task.id, *(a.id for a in details["ancestors"])}
    if top.parent_id is not None and top.parent_id not in known_ids:
        click.echo(f"   ⚠️  Parent task not found: {top.parent_id}")
    elif not details["ancestors"]:
        click.echo("   📍 Root task")
    for child in details["children"]:
        click.echo(f"      {_format_task(child)}")


@main.command()
@click.argument('header')
@click.option('-p', '--parent', 'parent_id', type=int, default=None, help='Id of the parent task')
@click.option('--type', 'task_type', default=None, help='Task type')
@click.option('--status', default=None, help='Initial status (default: IN PROGRESS)')
@click.option('--target', default=None, help='Target value')
@click.option('--limit', default=None, help='Limit value')
@click.option('--reviewer', default=None, help='Reviewer')
@click.pass_context
def add(ctx, header, parent_id, task_type, status, target, limit, reviewer):
    """Add a new task."""
    try:
        task = _service(ctx).create_task(
            header, type=task_type, status=status, target=target,
            limit=limit, reviewer=reviewer, parent_id=parent_id,
        )
    except TaskCascadeError as e:
        _fail(e)
    click.echo(f"📝 Created {_format_task(task)}")


@main.command()
@click.argument('task_id', type=int)
@click.option('--header', default=None, help='New name')
@click.option('--type', 'task_type', default=None, help='New type')
@click.option('--status', default=None, help='New status, written without propagation')
@click.option('--target', default=None, help='New target value')
@click.option('--limit', default=None, help='New limit value')
@click.option('--reviewer', default=None, help='New reviewer')
@click.option('-p', '--parent', 'parent_id', type=int, default=None, help='Move under this task')
@click.option('--root', is_flag=True, default=False, help='Make this a root task')
@click.pass_context
def edit(ctx, task_id, header, task_type, status, target, limit, reviewer, parent_id, root):
    """Edit a task's fields or move it in the tree."""
    if root and parent_id is not None:
        click.echo("❌ Use either --parent or --root, not both")
        raise click.exceptions.Exit(2)

    kwargs = dict(header=header, type=task_type, status=status,
                  target=target, limit=limit, reviewer=reviewer)
    if root:
        kwargs["parent_id"] = None
    elif parent_id is not None:
        kwargs["parent_id"] = parent_id

    try:
        task = _service(ctx).update_task(task_id, **kwargs)
    except TaskCascadeError as e:
        _fail(e)
    click.echo(f"✏️  Updated {_format_task(task)}")


@main.command()
@click.argument('task_id', type=int)
@click.argument('new_status')
@click.pass_context
def status(ctx, task_id, new_status):
    """Set a task's status and cascade it through the tree."""
    try:
        changed = _service(ctx).set_status(task_id, new_status)
    except TaskCascadeError as e:
        _fail(e)
    if not changed:
        click.echo("💤 Nothing changed")
        return
    click.echo(f"🔁 Updated {len(changed)} task(s):")
    _echo_changes(changed)


@main.command()
@click.argument('task_id', type=int)
@click.pass_context
def toggle(ctx, task_id):
    """Toggle a task between DONE and IN PROGRESS."""
    try:
        changed = _service(ctx).toggle_status(task_id)
    except TaskCascadeError as e:
        _fail(e)
    click.echo(f"🔁 Updated {len(changed)} task(s):")
    _echo_changes(changed)


@main.command()
@click.argument('task_id', type=int)
@click.confirmation_option(prompt='Are you sure you want to delete this task?')
@click.pass_context
def delete(ctx, task_id):
    """Delete a task without children."""
    try:
        _service(ctx).delete_task(task_id)
    except TaskCascadeError as e:
        _fail(e)
    click.echo(f"🗑️  Deleted task {task_id}")


@main.command()
@click.argument('task_id', type=int, required=False)
@click.pass_context
def parents(ctx, task_id):
    """List tasks that can become the parent of TASK_ID (or of a new task)."""
    try:
        candidates = _service(ctx).available_parents(task_id)
    except TaskCascadeError as e:
        _fail(e)
    if not candidates:
        click.echo("📭 No available parents")
        return
    for task in candidates:
        click.echo(_format_task(task))


@main.command(name="import")
@click.argument('file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def import_tasks(ctx, file):
    """Import tasks from a JSON file into an empty task file."""
    service = _service(ctx)
    try:
        count = service.import_tasks(file)
    except TaskCascadeError as e:
        _fail(e)

    if count == 0:
        click.echo("⚠️  Task file already contains tasks, import skipped")
        return

    click.echo(f"✅ Imported {count} task(s)")
    statuses = {}
    for task in service.list_tasks():
        statuses[task.status] = statuses.get(task.status, 0) + 1
    click.echo("📊 Task Statistics:")
    for name, total in statuses.items():
        click.echo(f"   {name}: {total}")


if __name__ == "__main__":
    main()
