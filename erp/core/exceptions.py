"""Business rule errors raised by models and services, turned into HTTP 400 by views"""


class BusinessRuleError(Exception):
    """A request that is well-formed but violates a business rule"""

    def __init__(self, message, field=None):
        super().__init__(message)
        self.message = message
        self.field = field

    def as_response_data(self):
        data = {'error': self.message}
        if self.field:
            data['field'] = self.field
        return data


class InvalidStatusTransition(BusinessRuleError):
    def __init__(self, model_name, current, target):
        super().__init__(
            f"{model_name} cannot move from '{current}' to '{target}'",
            field='status',
        )
        self.current = current
        self.target = target
