class JudgerError(Exception):
    def __init__(self, error_msg: str = ""):
        super().__init__(error_msg)
        self.error_msg = error_msg


class WorkerRejectError(JudgerError):
    pass


class FatalError(JudgerError):
    pass


class NoTestCaseError(FatalError):
    pass


class BadTestCaseError(FatalError):
    pass


class CompileLaunchError(FatalError):
    pass


class SandboxArtifactError(FatalError):
    pass
