import numpy as np
import time

from .lp_solver import GurobiLPSolver, LESS_EQUAL, EQUAL, GREATER_EQUAL
from .exceptions import InconsistentSolutionError, MalformedExplicitMDPError

# Default discount factor of the auxiliary LP bounding the occupation measures
DEFAULT_DISCOUNT_FACTOR = 0.99

# Relative difference under which two objective values are the same
OBJECTIVE_REL_TOL = 1e-4


#Class for setting up options for the optimization problems
class SolverOptions:
	def __init__(self, feasibility_tol=1e-6, int_feasibility_tol=1e-6, discount=DEFAULT_DISCOUNT_FACTOR,
					time_limit=None, strict_margin=1e-4, max_bound_increases=4, bound_increase_factor=10.0,
					check_consistency=True, verbose=False):
		"""
		:param feasibility_tol: primal feasibility tolerance of the solver, also used by the
			consistency checks of the solutions type: float
		:param int_feasibility_tol: integrality tolerance of the binary variables type: float
		:param discount: discount factor of the LP computing the upper bound on the
			occupation measures type: float
		:param time_limit: time limit (in seconds) of each solve, None for no limit
		:param strict_margin: a strict bound b is encoded as the non-strict bound b -/+ strict_margin
		:param max_bound_increases: number of times the upper bound X on the occupation measures
			can be multiplied by bound_increase_factor when it cuts off better policies
		:param bound_increase_factor: factor applied to X at each increase, larger than 1
		:param check_consistency: check that the solutions satisfy all the constraints
		:param verbose: Enable some logging
		"""
		self.feasibility_tol = feasibility_tol
		self.int_feasibility_tol = int_feasibility_tol
		self.discount = discount
		self.time_limit = time_limit
		self.strict_margin = strict_margin
		self.max_bound_increases = max_bound_increases
		self.bound_increase_factor = bound_increase_factor
		self.check_consistency = check_consistency
		self.verbose = verbose
		if feasibility_tol <= 0 or int_feasibility_tol <= 0:
			raise RuntimeError("tolerances should be larger than 0")
		if discount <= 0 or discount >= 1:
			raise RuntimeError("discount factor should be between 0 and 1")
		if time_limit is not None and time_limit <= 0:
			raise RuntimeError("time limit should be larger than 0")
		if strict_margin < 0:
			raise RuntimeError("strict margin should be non-negative")
		if max_bound_increases < 0 or bound_increase_factor <= 1:
			raise RuntimeError("X should be increased a non-negative number of times by a factor larger than 1")


class CostConstraint:
	""" A bound on the expected k-th cost of an explicit MDP, i.e., on
		sum_i,a x_ia * c^k(i,a).
		A hard constraint has no penalty function. A soft constraint has a
		penalty function, and its violation v is bounded by the distance
		between the soft bound and the hard bound (unbounded without hard bound).
	"""
	def __init__(self, cost_index, bound, upper=True, strict=False, penalty_function=None, hard_bound=None):
		if cost_index < 1:
			# Row 0 is the objective
			raise MalformedExplicitMDPError('Constraints apply to cost rows 1..K, not {}'.format(cost_index))
		self.cost_index = cost_index
		self.bound = bound
		self.upper = upper
		self.strict = strict
		self.penalty_function = penalty_function
		self.hard_bound = hard_bound
		if penalty_function is not None and hard_bound is not None \
				and (hard_bound < bound if upper else hard_bound > bound):
			raise RuntimeError("the hard bound should be looser than the soft bound")

	@property
	def is_soft(self):
		return self.penalty_function is not None

	@property
	def key(self):
		""" (cost index, upper), which identifies the violation of a soft constraint
		"""
		return (self.cost_index, self.upper)

	@property
	def label(self):
		return '{}_{}'.format(self.cost_index, 'ub' if self.upper else 'lb')

	@property
	def max_violation(self):
		if not self.is_soft or self.hard_bound is None:
			return np.inf
		return abs(self.hard_bound - self.bound)

	def __repr__(self):
		return 'CostConstraint(c{} {} {}{})'.format(self.cost_index, '<=' if self.upper else '>=',
					self.bound, ', soft' if self.is_soft else '')


class SolverResult:
	""" Result of a policy optimization.
		solution_found is False when the problem is infeasible; all the other
		fields are then None. violations maps the key (cost index, upper) of
		every soft constraint to the value of its violation
	"""
	def __init__(self, solution_found, policy=None, x=None, y=None, delta=None,
					objective_value=None, violations=None):
		self.solution_found = solution_found
		self.policy = policy
		self.x = x
		self.y = y
		self.delta = delta
		self.objective_value = objective_value
		self.violations = violations

	def __bool__(self):
		return self.solution_found


def out_terms(explicit_mdp, var_matrix, i, coeff=1.0):
	""" Terms of coeff * out(i), where out(i) = sum_a v_ia over the actions
		applicable in i
	"""
	return [(coeff, var_matrix[i][a]) for a in explicit_mdp.applicable_actions(i)]


def all_in_terms(explicit_mdp, var_matrix, coeff=1.0):
	""" Terms of coeff * in(i) for every state i, where
		in(i) = sum_j,a v_ja * P(i|j,a)
		:return : a list whose i-th element is the list of terms of in(i)
	"""
	terms = [list() for _ in range(explicit_mdp.num_states)]
	probs = explicit_mdp.trans_probs
	for j in range(explicit_mdp.num_states):
		for a in explicit_mdp.applicable_actions(j):
			for i in np.flatnonzero(probs[j, a]):
				terms[i].append((coeff * probs[j, a, i], var_matrix[j][a]))
	return terms


def out_values(explicit_mdp, x):
	""" out(i) = sum_a x_ia for every state, as a numpy array
	"""
	return np.sum(np.where(explicit_mdp.applicable_mask, x, 0.0), axis=1)


def in_values(explicit_mdp, x):
	""" in(i) = sum_j,a x_ja * P(i|j,a) for every state, as a numpy array
	"""
	x = np.where(explicit_mdp.applicable_mask, x, 0.0)
	return np.einsum('ja,jai->i', x, explicit_mdp.trans_probs)


def objective_terms(explicit_mdp, x_vars, k=0):
	""" Terms of sum_i,a x_ia * c^k(i,a) over the applicable actions
	"""
	return [(explicit_mdp.step_cost(k, i, a), x_vars[i][a]) \
				for i in range(explicit_mdp.num_states) \
					for a in explicit_mdp.applicable_actions(i)]


def add_delta_constraints(lp, explicit_mdp, delta_vars):
	""" Add the constraints: sum_a Delta_ia <= 1, for all i
	"""
	for i in range(explicit_mdp.num_states):
		terms = out_terms(explicit_mdp, delta_vars, i)
		if len(terms) > 0:
			lp.add_constr(terms, LESS_EQUAL, 1, 'constraintDelta_{}'.format(i))


def add_x_delta_constraints(lp, x_max, explicit_mdp, x_vars, delta_vars):
	""" Add the constraints: x_ia / X <= Delta_ia, for all i, a
	"""
	for i in range(explicit_mdp.num_states):
		for a in explicit_mdp.applicable_actions(i):
			lp.add_constr([(1.0 / x_max, x_vars[i][a]), (-1.0, delta_vars[i][a])],
							LESS_EQUAL, 0, 'constraintxDelta_{}_{}'.format(i, a))


def add_cost_constraints(lp, explicit_mdp, x_vars, constraints, options):
	""" Add the hard and soft cost constraints to the problem.
		:return : (penalty terms to add to the objective, dictionary (cost index, upper) -> violation variable)
	"""
	penalty_terms = list()
	violation_vars = dict()
	for constr in constraints:
		if constr.cost_index >= explicit_mdp.num_cost_functions:
			raise MalformedExplicitMDPError('No cost row {} in the explicit MDP'.format(constr.cost_index))
		if constr.is_soft:
			v_var, terms = add_soft_cost_constraint(lp, explicit_mdp, x_vars, constr)
			penalty_terms.extend(terms)
			violation_vars[constr.key] = v_var
		else:
			add_hard_cost_constraint(lp, explicit_mdp, x_vars, constr, options)
	return penalty_terms, violation_vars


def add_hard_cost_constraint(lp, explicit_mdp, x_vars, constr, options):
	""" Add sum_i,a x_ia * c^k(i,a) <= UB_k (or >= LB_k)
	"""
	bound = constr.bound
	if constr.strict:
		bound = bound - options.strict_margin if constr.upper else bound + options.strict_margin
	lp.add_constr(objective_terms(explicit_mdp, x_vars, constr.cost_index),
					LESS_EQUAL if constr.upper else GREATER_EQUAL, bound,
					'constraintC_{}_hard'.format(constr.label))


def add_soft_cost_constraint(lp, explicit_mdp, x_vars, constr):
	""" Add sum_i,a x_ia * c^k(i,a) - v <= SUB_k (or + v >= SLB_k), where
		0 <= v <= |HB_k - SB_k|, and return the penalty term k_p * penalty(v)
		:return : the violation variable v and the list of penalty terms
	"""
	label = constr.label
	v_max = constr.max_violation
	v_var = lp.add_var('v_{}'.format(label), 0.0, v_max)
	terms = objective_terms(explicit_mdp, x_vars, constr.cost_index)
	terms.append((-1.0 if constr.upper else 1.0, v_var))
	lp.add_constr(terms, LESS_EQUAL if constr.upper else GREATER_EQUAL, constr.bound,
					'constraintC_{}_soft'.format(label))

	penalty = constr.penalty_function
	if not penalty.is_nonlinear:
		return v_var, [(penalty.scaling_const, v_var)]
	if np.isinf(v_max):
		raise RuntimeError("a non-linear penalty needs a hard bound to sample the violation")
	return v_var, add_piecewise_linear_penalty(lp, label, penalty, v_max, v_var)


def add_piecewise_linear_penalty(lp, label, penalty, v_max, v_var):
	""" Approximate k_p * penalty(v) with m samples v_i = v_max / (m-1) * (i-1),
		i = 1..m, by a convex combination of two adjacent samples:
		(1) sum_{i=1 to m-1} h_i = 1, h_i binary
		(2) alpha_i <= h_{i-1} + h_i, for i = 1..m, where h_0 = h_m = 0
		(3) sum_{i=1 to m} alpha_i = 1
		(4) v = sum_{i=1 to m} alpha_i * v_i
		:return : the penalty terms k_p * sum_i alpha_i * penalty(v_i)
	"""
	m = penalty.num_samples
	step = v_max / (m - 1)
	v_samples = [step * (i - 1) for i in range(1, m + 1)]
	alpha = [lp.add_var('alpha_{}_{}'.format(label, i), 0.0, 1.0) for i in range(1, m + 1)]
	h = [lp.add_var('h_{}_{}'.format(label, i), 0.0, 1.0, binary=True) for i in range(1, m)]

	lp.add_constr([(1.0, h_i) for h_i in h], EQUAL, 1, 'constraint_h_{}'.format(label))
	for i in range(1, m + 1):
		terms = [(1.0, alpha[i - 1])]
		if i > 1:
			terms.append((-1.0, h[i - 2])) # h_{i-1}
		if i < m:
			terms.append((-1.0, h[i - 1])) # h_i
		lp.add_constr(terms, LESS_EQUAL, 0, 'constraint_alphah_{}_{}'.format(label, i))
	lp.add_constr([(1.0, a_i) for a_i in alpha], EQUAL, 1, 'constraint_alpha_{}'.format(label))
	lp.add_constr([(1.0, v_var)] + [(-v_i, a_i) for v_i, a_i in zip(v_samples, alpha)],
					EQUAL, 0, 'constraint_alphav_{}'.format(label))

	return [(penalty.scaling_const * penalty.penalty(v_i), a_i) for v_i, a_i in zip(v_samples, alpha)]


def upper_bound_occupation_measure(explicit_mdp, options=SolverOptions(), lp_factory=GurobiLPSolver):
	""" Compute X >= x_ia for all i, a, by solving
		maximize sum_i,a x_ia subject to:
		x_ia >= 0, and sum_a x_ja - gamma * sum_i,a x_ia * P(j|i,a) = alpha_j for all j,
		where alpha is 1 at the initial state and 0 elsewhere, and gamma is the
		discount factor of the options. States without applicable actions absorb
		the flow and have no constraint.
	"""
	n, m = explicit_mdp.num_states, explicit_mdp.num_actions
	with lp_factory('Upper bound of occupation measure', options) as lp:
		x_vars = lp.add_vars('x', n, m)
		in_terms = all_in_terms(explicit_mdp, x_vars, -options.discount)
		for j in range(n):
			terms = out_terms(explicit_mdp, x_vars, j)
			if len(terms) == 0:
				continue
			alpha_j = 1.0 if j == explicit_mdp.initial_state else 0.0
			lp.add_constr(terms + in_terms[j], EQUAL, alpha_j, 'constraint_{}'.format(j))
		lp.set_objective([(1.0, x_vars[i][a]) for i in range(n) \
							for a in explicit_mdp.applicable_actions(i)], minimize=False)
		lp.solve()
		if lp.sol_count == 0:
			raise MalformedExplicitMDPError('No occupation measure from the initial state')
		x_max = float(np.max(np.where(explicit_mdp.applicable_mask, lp.values(x_vars), 0.0)))
	if x_max <= 0:
		# No flow leaves the initial state
		x_max = 1.0
	if options.verbose:
		print('[Upper bound of occupation measure : {}]'.format(x_max))
	return x_max


def extract_deterministic_policy(explicit_mdp, x, tol):
	""" pi_ia = x_ia / out(i) for every state with out(i) > tol; other states
		get no action (all zeros). Values of x below tol are zeroed first
		:return : the n x m policy matrix
	"""
	x = np.where(x > tol, x, 0.0)
	policy = np.zeros(x.shape)
	outs = out_values(explicit_mdp, x)
	for i in np.flatnonzero(outs > tol):
		for a in explicit_mdp.applicable_actions(i):
			policy[i, a] = x[i, a] / outs[i]
	return policy


# Consistency checks of the solutions
def check_flow_conservation(explicit_mdp, x, tol):
	outs, ins = out_values(explicit_mdp, x), in_values(explicit_mdp, x)
	excluded = set(explicit_mdp.goal_states) | {explicit_mdp.initial_state}
	return all(np.abs(outs[i] - ins[i]) <= tol for i in range(explicit_mdp.num_states) \
					if i not in excluded)

def check_source_flow(explicit_mdp, x, tol):
	s0 = explicit_mdp.initial_state
	return np.abs(out_values(explicit_mdp, x)[s0] - in_values(explicit_mdp, x)[s0] - 1) <= tol

def check_sinks_flow(explicit_mdp, x, tol):
	ins = in_values(explicit_mdp, x)
	return np.abs(sum(ins[g] for g in explicit_mdp.goal_states) - 1) <= tol

def check_delta(explicit_mdp, delta, tol):
	return bool(np.all(out_values(explicit_mdp, delta) <= 1 + tol))

def check_x_delta(explicit_mdp, x, delta, x_max, tol):
	return bool(np.all(np.logical_or(~explicit_mdp.applicable_mask, x / x_max <= delta + tol)))

def check_cost_constraints(explicit_mdp, x, constraints, tol):
	""" Hard constraints must hold; soft constraints are not checked here
	"""
	for constr in constraints:
		if constr.is_soft:
			continue
		cost = explicit_mdp.occupancy_cost(constr.cost_index, x)
		if (cost > constr.bound + tol) if constr.upper else (cost < constr.bound - tol):
			return False
	return True

def check_delta_x_equivalence(explicit_mdp, x, delta, x_tol, int_tol):
	""" Delta_ia = 1 <=> x_ia > 0, for the states with out(i) > 0
	"""
	outs = out_values(explicit_mdp, x)
	for i in np.flatnonzero(outs > x_tol):
		for a in explicit_mdp.applicable_actions(i):
			is_one = np.abs(delta[i, a] - 1) <= int_tol
			is_zero = np.abs(delta[i, a]) <= int_tol
			if not ((is_one and x[i, a] > x_tol) or (is_zero and x[i, a] <= x_tol)):
				return False
	return True

def check_deterministic_policy(policy, tol):
	return bool(np.all(np.logical_or(policy <= tol, policy >= 1 - tol)))


class _OccupationMeasureSolver:
	""" Shared machinery of the SSP and average-cost solvers
	"""
	def __init__(self, explicit_mdp, constraints=(), options=SolverOptions(), lp_factory=GurobiLPSolver):
		"""
		:param explicit_mdp : the ExplicitMDP to solve; its cost row 0 is the objective
		:param constraints : a list of CostConstraint on the cost rows 1..K
		:param options : SolverOptions
		:param lp_factory : callable (name, options) -> LPSolver
		"""
		self._mdp = explicit_mdp
		self._constraints = list(constraints)
		self._options = options
		self._lp_factory = lp_factory
		self.total_solve_time = 0       # Total time elapsed
		self.init_encoding_time = 0     # Time for encoding the full problem

	def _verify(self, check_name, satisfied):
		if self._options.check_consistency and not satisfied:
			raise InconsistentSolutionError(check_name)

	def _finalize_policy(self, policy):
		tol = self._options.feasibility_tol
		self._verify('deterministic policy', check_deterministic_policy(policy, tol))
		return np.where(policy >= 1 - tol, 1.0, 0.0)

	def _log_result(self, result):
		if not self._options.verbose:
			return
		print('[Time used to build the full Model : {}]'.format(self.init_encoding_time))
		print('[Total solving time : {}]'.format(self.total_solve_time))
		if not result.solution_found:
			print('[No feasible solution]')
			return
		print('[Optimal expected cost : {}]'.format(result.objective_value))
		for k in range(1, self._mdp.num_cost_functions):
			print('[Expected {} : {}]'.format(self._mdp.cost_names[k], self._mdp.occupancy_cost(k, result.x)))
		if result.violations:
			print('[Constraint violations : {}]'.format(result.violations))
		print('[Optimal policy : {}]'.format({ i : self._mdp.action_name(a) \
					for i, a in zip(*np.nonzero(result.policy))}))

	def solve_optimal_policy(self):
		""" Return the n x m deterministic policy matrix, or None if infeasible
		"""
		result = self.solve()
		return result.policy if result.solution_found else None


class SSPSolver(_OccupationMeasureSolver):
	""" Compute an optimal deterministic policy of a stochastic shortest path
		problem (initial state, goal states) with optional cost constraints:
		minimize_x sum_i,a x_ia * c^0(i,a) subject to
		(C1) out(i) - in(i) = 0, for all i in S \\ (G and s0)
		(C2) out(s0) - in(s0) = 1
		(C3) sum_{g in G} in(g) = 1
		(C4) x_ia >= 0
		(C5) sum_a Delta_ia <= 1, Delta_ia binary
		(C6) x_ia / X <= Delta_ia, where X >= x_ia
		(Ck) the hard and soft cost constraints
		X starts from the discounted upper bound, which can be smaller than the
		occupation measures of the optimal policy when it revisits states. X is
		multiplied by the bound increase factor of the options until a solve
		neither saturates X nor improves on the solve with the previous X.
	"""
	def solve(self):
		mdp = self._mdp
		if len(mdp.goal_states) == 0:
			raise MalformedExplicitMDPError('A stochastic shortest path problem needs goal states')
		self.init_encoding_time = 0
		self.total_solve_time = 0
		if mdp.initial_state in mdp.goal_states:
			result = self._solve_at_goal()
			self._log_result(result)
			return result

		curr_time = time.time()
		x_max = upper_bound_occupation_measure(mdp, self._options, self._lp_factory)
		self.init_encoding_time += time.time() - curr_time
		previous = None
		for attempt in range(self._options.max_bound_increases + 1):
			if attempt > 0:
				x_max *= self._options.bound_increase_factor
				if self._options.verbose:
					print('[Increased upper bound of occupation measure : {}]'.format(x_max))
			result = self._solve_with_bound(x_max)
			if self._is_bound_confirmed(result, previous, x_max):
				break
			previous = result

		if result.solution_found:
			self._verify_all_constraints(result.x, result.delta, x_max)
			x_tol = max(self._options.feasibility_tol, x_max * self._options.int_feasibility_tol)
			policy = extract_deterministic_policy(mdp, result.x, x_tol)
			result.policy = self._finalize_policy(policy)
		self._log_result(result)
		return result

	def _is_bound_confirmed(self, result, previous, x_max):
		""" A solution is kept when no x_ia reaches X and the solve with the
			previous (smaller) X found the same objective value
		"""
		if not result.solution_found or previous is None or not previous.solution_found:
			return False
		x = np.where(self._mdp.applicable_mask, result.x, 0.0)
		if np.any(x >= x_max * (1 - self._options.feasibility_tol)):
			return False
		return abs(previous.objective_value - result.objective_value) \
					<= OBJECTIVE_REL_TOL * max(1.0, abs(result.objective_value))

	def _solve_with_bound(self, x_max):
		mdp = self._mdp
		n, m = mdp.num_states, mdp.num_actions
		curr_time = time.time()
		with self._lp_factory('Stochastic shortest path', self._options) as lp:
			# Create variables x_ia >= 0 and binary Delta_ia
			x_vars = lp.add_vars('x', n, m)
			delta_vars = lp.add_vars('Delta', n, m, 0.0, 1.0, binary=True)

			# Flow constraints
			in_terms = all_in_terms(mdp, x_vars, -1.0)
			goals, s0 = mdp.goal_states, mdp.initial_state
			for i in range(n):
				if i in goals or i == s0:
					continue
				lp.add_constr(out_terms(mdp, x_vars, i) + in_terms[i], EQUAL, 0, 'constraintC1_{}'.format(i))
			lp.add_constr(out_terms(mdp, x_vars, s0) + in_terms[s0], EQUAL, 1, 'constraintC2')
			lp.add_constr([(-coeff, var) for g in sorted(goals) for coeff, var in in_terms[g]],
							EQUAL, 1, 'constraintC3')

			# Deterministic policy
			add_delta_constraints(lp, mdp, delta_vars)
			add_x_delta_constraints(lp, x_max, mdp, x_vars, delta_vars)

			# Cost constraints and objective
			penalty_terms, v_vars = add_cost_constraints(lp, mdp, x_vars, self._constraints, self._options)
			lp.set_objective(objective_terms(mdp, x_vars) + penalty_terms)
			self.init_encoding_time += time.time() - curr_time

			curr_time = time.time()
			lp.solve()
			self.total_solve_time += time.time() - curr_time

			if lp.sol_count == 0:
				return SolverResult(False)
			return SolverResult(True, x=lp.values(x_vars), delta=lp.values(delta_vars),
						objective_value=lp.objective_value,
						violations={ k : lp.value(v) for k, v in v_vars.items()})

	def _solve_at_goal(self):
		""" The initial state is a goal: the empty policy costs 0 on every row,
			which must satisfy the hard constraints and gives the soft
			constraints their violation
		"""
		mdp = self._mdp
		tol = self._options.feasibility_tol
		zeros = np.zeros((mdp.num_states, mdp.num_actions))
		objective_value = 0.0
		violations = dict()
		for constr in self._constraints:
			if constr.cost_index >= mdp.num_cost_functions:
				raise MalformedExplicitMDPError('No cost row {} in the explicit MDP'.format(constr.cost_index))
			violation = max(0.0, -constr.bound if constr.upper else constr.bound)
			if not constr.is_soft:
				margin = self._options.strict_margin if constr.strict else 0.0
				if violation + margin > tol:
					return SolverResult(False)
				continue
			if violation > constr.max_violation + tol:
				return SolverResult(False)
			violations[constr.key] = violation
			objective_value += constr.penalty_function.scaling_const * constr.penalty_function.penalty(violation)
		return SolverResult(True, policy=zeros, x=zeros, delta=zeros.copy(),
					objective_value=objective_value, violations=violations)

	def _verify_all_constraints(self, x, delta, x_max):
		tol, int_tol = self._options.feasibility_tol, self._options.int_feasibility_tol
		# Sums over many states accumulate the solver's errors
		sum_tol = tol * max(1, self._mdp.num_states)
		self._verify('flow conservation', check_flow_conservation(self._mdp, x, sum_tol))
		self._verify('source flow', check_source_flow(self._mdp, x, sum_tol))
		self._verify('sinks flow', check_sinks_flow(self._mdp, x, sum_tol))
		self._verify('delta', check_delta(self._mdp, delta, int_tol * self._mdp.num_actions))
		self._verify('x-delta', check_x_delta(self._mdp, x, delta, x_max, tol + int_tol))
		self._verify('cost constraints', check_cost_constraints(self._mdp, x, self._constraints, sum_tol))
		self._verify('delta-x equivalence', check_delta_x_equivalence(self._mdp, x, delta,
						max(tol, x_max * int_tol), int_tol))


class AverageCostSolver(_OccupationMeasureSolver):
	""" Compute an optimal deterministic policy of an average-cost MDP with
		optional cost constraints:
		minimize_x,y sum_i,a x_ia * c^0(i,a) subject to
		(C1) out_x(i) - in_x(i) = 0, for all i
		(C2) out_x(i) + out_y(i) - in_y(i) = alpha_i = 1/n, for all i
		(C3) x_ia >= 0, y_ia >= 0
		(C5) sum_a Delta_ia <= 1, Delta_ia binary
		(C6) x_ia <= Delta_ia, since sum_i,a x_ia = 1
		(Ck) the hard and soft cost constraints on x
		Recurrent states (out_x(i) > 0) take the action of x, transient
		states take the first action with y_ia > 0.
	"""
	def solve(self):
		mdp = self._mdp
		n, m = mdp.num_states, mdp.num_actions
		curr_time = time.time()
		with self._lp_factory('Average cost MDP', self._options) as lp:
			x_vars = lp.add_vars('x', n, m)
			y_vars = lp.add_vars('y', n, m)
			delta_vars = lp.add_vars('Delta', n, m, 0.0, 1.0, binary=True)

			in_x = all_in_terms(mdp, x_vars, -1.0)
			in_y = all_in_terms(mdp, y_vars, -1.0)
			for i in range(n):
				lp.add_constr(out_terms(mdp, x_vars, i) + in_x[i], EQUAL, 0, 'constraintC1_{}'.format(i))
				lp.add_constr(out_terms(mdp, x_vars, i) + out_terms(mdp, y_vars, i) + in_y[i],
								EQUAL, 1.0 / n, 'constraintC2_{}'.format(i))

			add_delta_constraints(lp, mdp, delta_vars)
			add_x_delta_constraints(lp, 1.0, mdp, x_vars, delta_vars)

			penalty_terms, v_vars = add_cost_constraints(lp, mdp, x_vars, self._constraints, self._options)
			lp.set_objective(objective_terms(mdp, x_vars) + penalty_terms)
			self.init_encoding_time = time.time() - curr_time

			curr_time = time.time()
			lp.solve()
			self.total_solve_time = time.time() - curr_time

			if lp.sol_count == 0:
				result = SolverResult(False)
			else:
				result = SolverResult(True, x=lp.values(x_vars), y=lp.values(y_vars),
							delta=lp.values(delta_vars), objective_value=lp.objective_value,
							violations={ k : lp.value(v) for k, v in v_vars.items()})
		if result.solution_found:
			tol = self._options.feasibility_tol
			self._verify('delta', check_delta(mdp, result.delta, self._options.int_feasibility_tol * m))
			self._verify('x-delta', check_x_delta(mdp, result.x, result.delta, 1.0,
							tol + self._options.int_feasibility_tol))
			self._verify('cost constraints', check_cost_constraints(mdp, result.x, self._constraints,
							tol * max(1, n)))
			# Recurrent states
			x_tol = max(tol, self._options.int_feasibility_tol)
			policy = extract_deterministic_policy(mdp, result.x, x_tol)
			# Transient states
			outs = out_values(mdp, result.x)
			for i in np.flatnonzero(outs <= x_tol):
				for a in mdp.applicable_actions(i):
					if result.y[i, a] > tol:
						policy[i, a] = 1.0
						break
			result.policy = self._finalize_policy(policy)
		self._log_result(result)
		return result
