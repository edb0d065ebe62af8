""" Constraints on the expected values of the QA functions and the penalty
	functions used to relax them into soft constraints
"""
from enum import Enum

import numpy as np


class BoundType(Enum):
	UPPER_BOUND = 'upper'
	LOWER_BOUND = 'lower'


class LinearPenaltyFunction:
	""" penalty(v) = v, encoded exactly in the objective as k_p * v
	"""
	def __init__(self, scaling_const):
		if scaling_const < 0:
			raise RuntimeError("the penalty scaling constant should be non-negative")
		self.scaling_const = scaling_const

	@property
	def is_nonlinear(self):
		return False

	@property
	def num_samples(self):
		return 0

	def penalty(self, violation):
		return violation


class QuadraticPenaltyFunction:
	""" penalty(v) = v^2, approximated by a piecewise-linear function
		through num_samples evenly spaced samples of the violation
	"""
	def __init__(self, scaling_const, num_samples=10):
		if scaling_const < 0:
			raise RuntimeError("the penalty scaling constant should be non-negative")
		if num_samples < 2:
			raise RuntimeError("at least 2 samples are needed for the piecewise-linear approximation")
		self.scaling_const = scaling_const
		self._num_samples = num_samples

	@property
	def is_nonlinear(self):
		return True

	@property
	def num_samples(self):
		return self._num_samples

	def penalty(self, violation):
		return np.square(violation)


class AttributeConstraint:
	""" A bound on the expected total (or average) value of a QA function.
		The constraint is soft if it has a penalty function, hard otherwise
	"""
	def __init__(self, qa_function, bound_value, bound_type=BoundType.UPPER_BOUND,
					strict=False, penalty_function=None):
		"""
		:param qa_function : the constrained QAFunction
		:param bound_value : the value of the bound
		:param bound_type : BoundType.UPPER_BOUND or BoundType.LOWER_BOUND
		:param strict : True for a strict inequality
		:param penalty_function : LinearPenaltyFunction or QuadraticPenaltyFunction
				for a soft constraint, None for a hard constraint
		"""
		self.qa_function = qa_function
		self.bound_value = bound_value
		self.bound_type = bound_type
		self.strict = strict
		self.penalty_function = penalty_function

	@property
	def is_soft(self):
		return self.penalty_function is not None

	@property
	def is_upper_bound(self):
		return self.bound_type == BoundType.UPPER_BOUND

	def is_satisfied(self, value, tol=0.0):
		if self.is_upper_bound:
			return value < self.bound_value if self.strict else value <= self.bound_value + tol
		return value > self.bound_value if self.strict else value >= self.bound_value - tol

	def __repr__(self):
		return '{}({} {} {})'.format('Soft' if self.is_soft else 'Hard', self.qa_function.name,
					('<' if self.is_upper_bound else '>') + ('' if self.strict else '='), self.bound_value)
