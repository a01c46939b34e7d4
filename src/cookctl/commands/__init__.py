"""Built-in command handlers for cookctl.

Each module declares the flag-set builders and handlers for one command
group and exports the group's :class:`~cookctl.routing.tree.CommandNode`:

* :mod:`~cookctl.commands.system` -- ``health``, ``version``,
  ``completion`` and ``help``.
* :mod:`~cookctl.commands.auth` -- credentials and token bootstrap.
* :mod:`~cookctl.commands.token` -- personal access tokens.
* :mod:`~cookctl.commands.catalog` -- tags, recipe books and items.
* :mod:`~cookctl.commands.user` -- user administration.
* :mod:`~cookctl.commands.recipe` -- recipes and their JSON payloads.
* :mod:`~cookctl.commands.meal_plan` -- meal plan entries.
* :mod:`~cookctl.commands.shopping_list` -- shopping lists and items.
* :mod:`~cookctl.commands.config` -- the ``config.json`` file.

The nodes are assembled into the command tree by :mod:`cookctl.registry`.
"""
