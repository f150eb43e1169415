import threading

from poracle.counter import GuessCounter


class TestGuessCounter:
    """Test suite for GuessCounter"""

    def test_increment_and_reset(self):
        """Counter counts up by one and resets to zero"""
        counter = GuessCounter()
        assert counter.value == 0
        assert counter.increment() == 1
        assert counter.increment() == 2
        assert int(counter) == 2
        counter.reset()
        assert counter.value == 0

    def test_concurrent_increments(self):
        """No increments are lost across threads"""
        counter = GuessCounter()

        def work():
            for _ in range(1000):
                counter.increment()

        threads = [threading.Thread(target=work) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert counter.value == 8000
