from hfmcmd.cmds import command


class Hidden:
    @command
    def hidden(self):
        return "hidden"
