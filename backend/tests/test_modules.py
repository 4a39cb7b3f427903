"""Tests for the module gate and role dependencies."""

import pytest

from workhub.auth.deps import require_admin, require_hr_or_admin, require_manager
from workhub.auth.modules import (
    MODULE_RULES,
    ROUTE_MODULES,
    Module,
    ModuleRule,
    accessible_modules,
    can_access_module,
    can_access_route,
    filter_modules,
    modules_for_department,
    require_module,
    validate_module_rules,
)
from workhub.errors import ForbiddenError, ModuleConfigError
from workhub.models import Department, UserRole


@pytest.mark.unit
class TestModuleRuleTable:
    def test_table_is_complete(self):
        validate_module_rules()
        assert set(MODULE_RULES) == set(Module)

    def test_every_route_points_at_a_known_module(self):
        assert set(ROUTE_MODULES.values()) <= set(MODULE_RULES)

    def test_missing_rule_is_rejected(self):
        rules = dict(MODULE_RULES)
        del rules[Module.FLEET]
        with pytest.raises(ModuleConfigError, match="fleet"):
            validate_module_rules(rules)

    def test_rule_admitting_nobody_is_rejected(self):
        rules = {**MODULE_RULES, Module.PAYROLL: ModuleRule(frozenset())}
        with pytest.raises(ModuleConfigError, match="admits nobody"):
            validate_module_rules(rules)

    def test_rule_excluding_admin_department_is_rejected(self):
        rules = {**MODULE_RULES, Module.PAYROLL: ModuleRule(frozenset({Department.HR}))}
        with pytest.raises(ModuleConfigError, match="admin department"):
            validate_module_rules(rules)


@pytest.mark.unit
class TestModuleAccess:
    def test_unknown_module_is_a_configuration_error(self, make_identity):
        with pytest.raises(ModuleConfigError):
            can_access_module(make_identity(), "spaceship")

    def test_require_module_rejects_unknown_module(self):
        with pytest.raises(ModuleConfigError):
            require_module("spaceship")

    def test_module_names_are_accepted_as_strings(self, make_identity):
        assert can_access_module(make_identity(Department.FINANCE), "finance") is True

    @pytest.mark.parametrize("department", list(Department))
    def test_general_modules_open_to_everyone(self, make_identity, department):
        identity = make_identity(department)
        for module in (Module.DASHBOARD, Module.PROJECTS, Module.MAIL, Module.SUPPORT):
            assert can_access_module(identity, module) is True

    def test_department_restricted_modules(self, make_identity):
        finance = make_identity(Department.FINANCE)
        operations = make_identity(Department.OPERATIONS)
        procurement = make_identity(Department.PROCUREMENT)

        assert can_access_module(finance, Module.FINANCE) is True
        assert can_access_module(operations, Module.FINANCE) is False
        assert can_access_module(operations, Module.FLEET) is True
        assert can_access_module(finance, Module.FLEET) is False
        assert can_access_module(procurement, Module.PAYABLES) is True
        assert can_access_module(procurement, Module.INVOICING) is False

    def test_admin_department_opens_everything(self, make_identity):
        identity = make_identity(Department.ADMIN)
        assert all(can_access_module(identity, m) for m in Module)

    def test_global_admin_opens_everything(self, make_identity):
        identity = make_identity(Department.OPERATIONS, global_role=UserRole.ADMIN)
        assert accessible_modules(identity) == list(Module)

    def test_managers_reach_leave_management(self, make_identity):
        manager = make_identity(Department.OPERATIONS, is_manager=True)
        staff = make_identity(Department.OPERATIONS)

        assert can_access_module(manager, Module.LEAVE_MANAGEMENT) is True
        assert can_access_module(staff, Module.LEAVE_MANAGEMENT) is False
        # The manager flag only widens modules that say so
        assert can_access_module(manager, Module.PAYROLL) is False

    def test_employee_admin_role_does_not_open_modules(self, make_identity):
        identity = make_identity(Department.OPERATIONS, role="admin")
        assert can_access_module(identity, Module.PAYROLL) is False

    def test_modules_for_department(self):
        hr = modules_for_department(Department.HR)

        assert Module.HR_EMPLOYEES in hr
        assert Module.LEAVE_MANAGEMENT in hr
        assert Module.DATA_EXPORT in hr
        assert Module.FINANCE not in hr
        assert hr == [m for m in Module if m in hr]

    def test_filter_modules_keeps_order(self, make_identity):
        identity = make_identity(Department.FINANCE)
        result = filter_modules(identity, ["payroll", Module.INVOICING, "dashboard", Module.FLEET])
        assert result == [Module.INVOICING, Module.DASHBOARD]


@pytest.mark.unit
class TestRouteAccess:
    def test_routes_map_onto_modules(self, make_identity):
        operations = make_identity(Department.OPERATIONS)

        assert can_access_route(operations, "/") is True
        assert can_access_route(operations, "/fleet/vehicles") is True
        assert can_access_route(operations, "/finance/gl") is False

    def test_trailing_slash_is_ignored(self, make_identity):
        operations = make_identity(Department.OPERATIONS)
        assert can_access_route(operations, "/finance/") is False
        assert can_access_route(operations, "/fleet/") is True

    def test_unmapped_routes_are_open(self, make_identity):
        assert can_access_route(make_identity(Department.PROCUREMENT), "/settings/profile") is True


@pytest.mark.unit
@pytest.mark.asyncio
class TestGateDependencies:
    async def test_require_module_passes_identity_through(self, make_identity):
        check = require_module(Module.FLEET)
        identity = make_identity(Department.OPERATIONS)
        assert await check(identity=identity) is identity

    async def test_require_module_denies(self, make_identity):
        check = require_module("payroll")
        with pytest.raises(ForbiddenError, match="payroll"):
            await check(identity=make_identity(Department.FINANCE))

    async def test_require_admin(self, make_identity):
        admin = make_identity(Department.ADMIN, global_role=UserRole.ADMIN)
        assert await require_admin(identity=admin) is admin

        with pytest.raises(ForbiddenError):
            await require_admin(identity=make_identity(Department.ADMIN, role="admin"))

    async def test_require_hr_or_admin(self, make_identity):
        hr = make_identity(Department.HR)
        assert await require_hr_or_admin(identity=hr) is hr

        with pytest.raises(ForbiddenError):
            await require_hr_or_admin(identity=make_identity(Department.FINANCE))

    async def test_require_manager(self, make_identity):
        manager = make_identity(Department.FINANCE, is_manager=True)
        assert await require_manager(identity=manager) is manager

        global_admin = make_identity(Department.OPERATIONS, global_role=UserRole.ADMIN)
        assert await require_manager(identity=global_admin) is global_admin

        with pytest.raises(ForbiddenError):
            await require_manager(identity=make_identity(Department.FINANCE))
