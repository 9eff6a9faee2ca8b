"""
plugins/admin.py

Admin plugin: basic commands and runtime module management.

Commands:
    !ping - Reply with pong
    !help - List enabled commands
    !modules - List modules and whether they are enabled
    !enable <name> - Enable a module or command (master only)
    !disable <name> - Disable a module or command (master only)

Configuration:
    ping_cooldown: Seconds between !ping uses per user (default: 5)
"""

from lib.plugin import Plugin, PluginMetadata, PluginNotFoundError


class AdminPlugin(Plugin):
    """
    Core commands every bot carries.

    The module and command lists come from the plugin registry, which
    handlers receive through ``ctx.services['registry']``.
    """

    @property
    def metadata(self):
        return PluginMetadata(
            name='Admin',
            description='Basic commands and module management',
        )

    def setup(self):
        self.add_command('ping', self.on_ping,
                         cooldown=self.get_config('ping_cooldown', 5),
                         description='Check that the bot is alive')
        self.add_command('help', self.on_help, cooldown=30,
                         description='List enabled commands')
        self.add_command('modules', self.on_modules, cooldown=30,
                         description='List modules')
        self._enable_command = self.add_command(
            'enable', self.on_enable, master_only=True,
            description='Enable a module or command')
        self.add_command('disable', self.on_disable, master_only=True,
                         description='Disable a module or command')

    def on_ping(self, ctx):
        return 'pong'

    def on_help(self, ctx):
        registry = ctx.services['registry']
        prefix = ctx.services.get('prefix', '!')
        names = sorted(c.name for c in registry.list_commands() if c.is_enabled())
        return 'Commands: ' + ', '.join(prefix + name for name in names)

    def on_modules(self, ctx):
        registry = ctx.services['registry']
        return 'Modules: ' + ', '.join(
            p.name if p.is_enabled else f'{p.name} (disabled)'
            for p in registry.list_plugins()
        )

    def on_enable(self, ctx):
        return self._toggle(ctx, enable=True)

    def on_disable(self, ctx):
        return self._toggle(ctx, enable=False)

    def _toggle(self, ctx, enable):
        if not ctx.args:
            return None

        name = ctx.args[0]
        registry = ctx.services['registry']

        # Disabling this module or !enable would lock the master out
        if not enable:
            found = registry.get(name) or registry.get_command(name)
            if found is self or found is self._enable_command:
                self.logger.warning(f"{ctx.sender} tried to disable {name}")
                return None

        try:
            target = registry.enable(name) if enable else registry.disable(name)
        except PluginNotFoundError as e:
            self.logger.info(str(e))
            return None

        label = getattr(target, 'name', name)
        return f"{label} {'enabled' if enable else 'disabled'}"
