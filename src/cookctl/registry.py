"""The cookctl command tree.

Top-level commands appear in help in the order listed here. Completion
scripts sort names independently.
"""

from __future__ import annotations

from cookctl.commands.auth import auth_command
from cookctl.commands.catalog import book_command, item_command, tag_command
from cookctl.commands.config import config_command
from cookctl.commands.meal_plan import meal_plan_command
from cookctl.commands.recipe import recipe_command
from cookctl.commands.shopping_list import shopping_list_command
from cookctl.commands.system import completion_command, health_command, help_command, version_command
from cookctl.commands.token import token_command
from cookctl.commands.user import user_command
from cookctl.routing.tree import CommandNode, validate_tree

COMMANDS: tuple[CommandNode, ...] = validate_tree(
    (
        health_command,
        version_command,
        completion_command,
        help_command,
        auth_command,
        token_command,
        tag_command,
        item_command,
        book_command,
        user_command,
        recipe_command,
        meal_plan_command,
        shopping_list_command,
        config_command,
    )
)
