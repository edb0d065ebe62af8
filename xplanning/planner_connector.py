from enum import Enum

from .explicit_mdp import flatten_xmdp
from .lp_solver import GurobiLPSolver
from .mdp_solver import SolverOptions, CostConstraint, SSPSolver, AverageCostSolver
from .policy import Policy
from .exceptions import IncompatibilityError


class CostCriterion(Enum):
	TOTAL_COST = 'total'
	AVERAGE_COST = 'average'


class PlannerConnector:
	""" Compute optimal policies of a factored MDP, possibly under hard and
		soft constraints on its QA functions.
		A new explicit MDP is flattened for every objective function since the
		objective costs are written into it.
	"""
	def __init__(self, xmdp, cost_criterion=CostCriterion.TOTAL_COST,
					options=SolverOptions(), lp_factory=GurobiLPSolver):
		"""
		:param xmdp : the XMDP to plan for
		:param cost_criterion : CostCriterion.TOTAL_COST (stochastic shortest path
			to the goal) or CostCriterion.AVERAGE_COST (long-run average)
		:param options : SolverOptions of the LP/MIP problems
		:param lp_factory : callable (name, options) -> LPSolver
		"""
		self._xmdp = xmdp
		self._criterion = cost_criterion
		self._options = options
		self._lp_factory = lp_factory
		self.explicit_mdp = None
		self.result = None

	def generate_optimal_policy(self, objective=None, hard_constraints=(), soft_constraints=()):
		""" Compute an optimal deterministic policy.
			:param objective : the CostFunction to minimize, the XMDP's cost function if None
			:param hard_constraints : a list of hard AttributeConstraint
			:param soft_constraints : a list of soft AttributeConstraint (with a penalty
				function). A hard constraint on the same QA function and of the
				same bound type bounds the violation of the soft constraint; a strict
				hard bound is also kept as a constraint of its own
			:return : a Policy, or None if no policy satisfies the hard constraints
		"""
		self.explicit_mdp = flatten_xmdp(self._xmdp, objective,
								expand_goals=self._criterion == CostCriterion.AVERAGE_COST,
								verbose=self._options.verbose)
		constraints = self.create_cost_constraints(hard_constraints, soft_constraints)
		if self._criterion == CostCriterion.TOTAL_COST:
			solver = SSPSolver(self.explicit_mdp, constraints, self._options, self._lp_factory)
		else:
			solver = AverageCostSolver(self.explicit_mdp, constraints, self._options, self._lp_factory)
		self.result = solver.solve()
		if not self.result.solution_found:
			return None
		return Policy.from_policy_matrix(self.result.policy, self.explicit_mdp)

	def create_cost_constraints(self, hard_constraints, soft_constraints):
		""" Translate constraints on QA functions into constraints on the cost
			rows of the current explicit MDP
		"""
		for constr in hard_constraints:
			if constr.is_soft:
				raise IncompatibilityError('{} is not a hard constraint'.format(constr))
		for constr in soft_constraints:
			if not constr.is_soft:
				raise IncompatibilityError('{} is not a soft constraint'.format(constr))

		constraints = list()
		soft_keys = set()
		for soft in soft_constraints:
			k = self.explicit_mdp.cost_index(soft.qa_function.name)
			hard_bound = None
			for hard in hard_constraints:
				if hard.qa_function == soft.qa_function and hard.bound_type == soft.bound_type:
					hard_bound = hard.bound_value
			constraints.append(CostConstraint(k, soft.bound_value, soft.is_upper_bound,
								penalty_function=soft.penalty_function, hard_bound=hard_bound))
			soft_keys.add((soft.qa_function, soft.bound_type))
		for hard in hard_constraints:
			if (hard.qa_function, hard.bound_type) in soft_keys and not hard.strict:
				# Already enforced by the bound on the violation
				continue
			constraints.append(CostConstraint(self.explicit_mdp.cost_index(hard.qa_function.name),
								hard.bound_value, hard.is_upper_bound, strict=hard.strict))
		return constraints

	def qa_values(self):
		""" Expected total (or average) value of every QA function under the
			last computed policy
			:return : a dictionary QA name -> value, None if no policy was found
		"""
		if self.result is None or not self.result.solution_found:
			return None
		return { name : self.explicit_mdp.occupancy_cost(k, self.result.x) \
					for k, name in enumerate(self.explicit_mdp.cost_names) if k > 0}
