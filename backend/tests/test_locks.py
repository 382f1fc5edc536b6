import threading
import time

from fitness_rpg.services.locks import UserLocks


def test_same_user_is_serialized():
    locks = UserLocks()
    active = []
    overlaps = []

    def worker():
        with locks.hold("user-1"):
            if active:
                overlaps.append(True)
            active.append(True)
            time.sleep(0.01)
            active.pop()

    threads = [threading.Thread(target=worker) for _ in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert overlaps == []


def test_lock_is_reentrant():
    locks = UserLocks()

    with locks.hold("user-1"):
        with locks.hold("user-1"):
            assert len(locks) == 1


def test_different_users_do_not_block():
    locks = UserLocks()
    entered = threading.Event()

    def other_user():
        with locks.hold("user-2"):
            entered.set()

    with locks.hold("user-1"):
        thread = threading.Thread(target=other_user)
        thread.start()
        assert entered.wait(timeout=2)
        thread.join()


def test_unused_locks_are_released():
    locks = UserLocks()

    with locks.hold("user-1"):
        pass

    assert len(locks) == 0
