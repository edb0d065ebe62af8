""" Errors raised while assembling, flattening and solving factored MDPs.
	Infeasibility of an optimization problem is NOT an error: solvers
	return None (or a result with solution_found=False) in that case.
"""

class XMDPError(Exception):
	""" Base class for all the errors of this package
	"""
	pass


# Lookups that did not resolve
class NotFoundError(XMDPError):
	pass

class VarNotFoundError(NotFoundError):
	def __init__(self, var_name):
		super().__init__('State variable {} not found'.format(var_name))
		self.var_name = var_name

class ActionNotFoundError(NotFoundError):
	def __init__(self, action):
		super().__init__('Action {} not found'.format(action))
		self.action = action

class DiscriminantNotFoundError(NotFoundError):
	def __init__(self, discriminant, action=None):
		msg = 'Discriminant {} not found'.format(discriminant)
		if action is not None:
			msg += ' for action {}'.format(action)
		super().__init__(msg)
		self.discriminant = discriminant
		self.action = action

class EffectClassNotFoundError(NotFoundError):
	def __init__(self, effect_class):
		super().__init__('Effect class {} not found'.format(effect_class))
		self.effect_class = effect_class

class EffectNotFoundError(NotFoundError):
	def __init__(self, effect):
		super().__init__('Effect {} not found'.format(effect))
		self.effect = effect

class AttributeNotFoundError(NotFoundError):
	def __init__(self, attr_name):
		super().__init__('QA function {} not found'.format(attr_name))
		self.attr_name = attr_name


# Model-assembly sanity checks
class IncompatibilityError(XMDPError):
	pass

class IncompatibleVarError(IncompatibilityError):
	def __init__(self, var_def, value=None):
		if value is None:
			msg = 'Incompatible state variable {}'.format(var_def)
		else:
			msg = 'Value {} is not in the domain of {}'.format(value, var_def)
		super().__init__(msg)

class IncompatibleActionError(IncompatibilityError):
	def __init__(self, action, expected=None):
		msg = 'Incompatible action {}'.format(action)
		if expected is not None:
			msg += ' (expected one of {})'.format(expected)
		super().__init__(msg)

class IncompatibleDiscriminantClassError(IncompatibilityError):
	def __init__(self, discr_class):
		super().__init__('Incompatible discriminant class {}'.format(discr_class))

class IncompatibleEffectClassError(IncompatibilityError):
	def __init__(self, effect_class):
		super().__init__('Incompatible effect class {}'.format(effect_class))

class IncompatibleEffectError(IncompatibilityError):
	def __init__(self, effect):
		super().__init__('Effect {} does not belong to the expected effect class'.format(effect))


# Structurally invalid models
class MalformedModelError(XMDPError):
	pass

class ProbabilityNotNormalizedError(MalformedModelError):
	def __init__(self, total, context=''):
		super().__init__('Probabilities sum to {} instead of 1 {}'.format(total, context).strip())
		self.total = total

class EffectClassPartitionError(MalformedModelError):
	pass

class MalformedExplicitMDPError(MalformedModelError):
	pass

class ExplicitModelParsingError(MalformedModelError):
	def __init__(self, msg, path=None):
		if path is not None:
			msg = '{} [{}]'.format(msg, path)
		super().__init__(msg)
		self.path = path


class InconsistentSolutionError(XMDPError):
	""" Raised when the solution returned by the LP/MIP backend violates
		one of the constraints it was supposed to satisfy
	"""
	def __init__(self, check_name):
		super().__init__('Consistency check failed : {}'.format(check_name))
		self.check_name = check_name
