import pytest

from taotu.balancer import Balancer, BalancerStrategy


class FakeManager:
    def __init__(self, amount):
        self.amount = amount

    def eventer_amount(self):
        return self.amount


def test_round_robin_cycles_over_all_managers():
    managers = [FakeManager(0), FakeManager(0), FakeManager(0)]
    balancer = Balancer(managers, BalancerStrategy.ROUND_ROBIN)
    picked = [balancer.pick() for _ in range(4)]
    assert picked == [managers[1], managers[2], managers[0], managers[1]]


def test_min_events_picks_least_loaded_io_manager():
    managers = [FakeManager(0), FakeManager(5), FakeManager(2), FakeManager(7)]
    balancer = Balancer(managers)
    assert balancer.pick() is managers[2]


def test_min_events_ignores_main_manager():
    managers = [FakeManager(0), FakeManager(3), FakeManager(4)]
    balancer = Balancer(managers, BalancerStrategy.MIN_EVENTS)
    assert balancer.pick() is managers[1]


def test_min_events_ties_choose_first():
    managers = [FakeManager(9), FakeManager(1), FakeManager(1)]
    balancer = Balancer(managers)
    assert balancer.pick() is managers[1]


def test_min_events_follows_changing_loads():
    managers = [FakeManager(0), FakeManager(0), FakeManager(0)]
    balancer = Balancer(managers)
    first = balancer.pick()
    first.amount += 1
    second = balancer.pick()
    assert second is not first
    assert second is managers[2]


def test_single_manager_is_always_picked():
    managers = [FakeManager(4)]
    for strategy in BalancerStrategy:
        balancer = Balancer(managers, strategy)
        assert balancer.pick() is managers[0]
        assert balancer.pick() is managers[0]


def test_strategy_can_be_changed():
    managers = [FakeManager(0), FakeManager(9), FakeManager(1)]
    balancer = Balancer(managers, BalancerStrategy.ROUND_ROBIN)
    assert balancer.pick() is managers[1]
    balancer.strategy = BalancerStrategy.MIN_EVENTS
    assert balancer.pick() is managers[2]


def test_property_style_amount_supported():
    class PropertyManager:
        def __init__(self, amount):
            self.eventer_amount = amount

    managers = [PropertyManager(0), PropertyManager(3), PropertyManager(1)]
    assert Balancer(managers).pick() is managers[2]


def test_empty_managers_raise():
    with pytest.raises(ValueError):
        Balancer([]).pick()


def test_invalid_strategy_rejected():
    with pytest.raises(ValueError):
        Balancer([FakeManager(0)], 7)