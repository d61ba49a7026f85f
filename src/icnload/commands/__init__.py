"""Built-in CLI sub-commands for icnload.

* :mod:`~icnload.commands.run` -- run the reload workflow for one step.
* :mod:`~icnload.commands.check` -- validate step fields without any
  network call.
* :mod:`~icnload.commands.profile` -- save, show, list and delete stored
  step configurations.

``run`` and ``check`` are plain callbacks registered on the root app;
``profile`` is a :class:`typer.Typer` sub-application.
"""
