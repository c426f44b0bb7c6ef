"""MCP prompt templates for planning a day."""

from day_planner.mcp.server import mcp


@mcp.prompt()
def plan_day(hours: float = 8, focus: str = "") -> str:
    """Generate a prompt to split today's hours across projects."""
    focus_line = f"My main focus today: {focus}\n\n" if focus else ""
    return (
        f"I have {hours:g} hours of work today.\n\n"
        f"{focus_line}"
        f"Use kanban_board to see my open tasks, then:\n"
        f"1. Pick between 1 and 6 projects to work on\n"
        f"2. Give each a percentage so they total exactly 100\n"
        f"3. Save the split with save_allocation\n"
        f"4. Point out tasks in the putting-off column I should tackle first"
    )


@mcp.prompt()
def daily_review(date: str = "") -> str:
    """Generate a prompt to review how the day went."""
    day = date or "today"
    return (
        f"Please review my day ({day}).\n\n"
        f"Use planned_vs_actual to compare planned and logged hours, then summarize:\n"
        f"1. Which projects got more or less time than planned\n"
        f"2. Unplanned work that crept in\n"
        f"3. One adjustment for tomorrow's allocation"
    )
