#!/usr/bin/env python3
"""
Unified Test Runner for Update History Tools

Runs all test suites and prints a consolidated summary.
Each test suite outputs: TEST_RESULTS: PASSED=X TOTAL=Y SUITE="Name"

Environment Variables:
    UNIFIED_TEST_RUNNER:
        - Set to '1' for every suite started by this runner

Usage:
    python test_suites/run_all_tests.py                 # Run all suites
    python test_suites/parsing/test_heading_parser.py   # Run one suite directly
"""

import os
import re
import subprocess
import sys
import time
from pathlib import Path
from typing import Dict, List


class TestSuiteRunner:
    """Unified test runner that executes all standardized test suites.

    All test suites must output a standard results line:
    TEST_RESULTS: PASSED=X TOTAL=Y SUITE="Name"
    """

    def __init__(self):
        self.results: List[Dict] = []
        suites_dir = Path("test_suites")
        self.test_suites = [
            {'name': 'Heading Parser',
             'command': [sys.executable, str(suites_dir / "parsing" / "test_heading_parser.py")]},
            {'name': 'Record Builder',
             'command': [sys.executable, str(suites_dir / "parsing" / "test_record_builder.py")]},
            {'name': 'Dedupe Ordering',
             'command': [sys.executable, str(suites_dir / "processing" / "test_dedupe_ordering.py")]},
            {'name': 'OS Lookup',
             'command': [sys.executable, str(suites_dir / "os_lookup" / "test_os_lookup.py")]},
            {'name': 'Heading Gathering',
             'command': [sys.executable, str(suites_dir / "gathering" / "test_gather_headings.py")]},
            {'name': 'Update Pipeline',
             'command': [sys.executable, str(suites_dir / "integration" / "test_update_pipeline.py")]},
            {'name': 'Workflow Logger',
             'command': [sys.executable, str(suites_dir / "tool_infrastructure" / "test_workflow_logger.py")]},
        ]

    def parse_standard_test_output(self, output: str) -> Dict:
        """Parse the TEST_RESULTS line of a suite's output."""
        if not output:
            return {'tests_passed': 0, 'tests_total': 0, 'success': False, 'summary': 'No output captured'}

        match = re.search(r'TEST_RESULTS: PASSED=(\d+) TOTAL=(\d+) SUITE="([^"]*)"', output)
        if match:
            passed, total, suite_name = match.groups()
            return {
                'tests_passed': int(passed),
                'tests_total': int(total),
                'suite_name': suite_name,
                'success': int(passed) == int(total),
                'summary': f'{passed}/{total} tests passed'
            }

        return {
            'tests_passed': 0,
            'tests_total': 0,
            'success': False,
            'summary': 'ERROR: Standard test output format not found'
        }

    def run_test_suite(self, suite: Dict) -> Dict:
        """Run a single test suite and return results."""
        print(f"Running {suite['name']}...")
        start_time = time.time()

        env = os.environ.copy()
        env['PYTHONIOENCODING'] = 'utf-8'
        env['UNIFIED_TEST_RUNNER'] = '1'

        try:
            result = subprocess.run(
                suite['command'],
                cwd=Path(__file__).parent.parent,  # Project root
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                timeout=300,
                env=env,
                encoding='utf-8',
                errors='replace'
            )
        except subprocess.TimeoutExpired:
            return {
                'name': suite['name'],
                'success': False,
                'execution_time': time.time() - start_time,
                'return_code': -1,
                'tests_passed': 0,
                'tests_total': 0,
                'summary': 'Test suite timed out'
            }

        test_info = self.parse_standard_test_output(result.stdout)
        success = result.returncode == 0 and test_info['success']

        if not success:
            print(f"\nFAILURE in {suite['name']}:")
            if result.stderr:
                print(f"Error Details:\n{result.stderr}")
            diagnostic_lines = [line.strip() for line in result.stdout.split('\n')
                                if line.strip() and not line.startswith('TEST_RESULTS:')]
            if diagnostic_lines:
                print(f"Diagnostic Output:\n{chr(10).join(diagnostic_lines)}")
            print()

        return {
            'name': suite['name'],
            'success': success,
            'execution_time': time.time() - start_time,
            'return_code': result.returncode,
            'tests_passed': test_info['tests_passed'],
            'tests_total': test_info['tests_total'],
            'summary': test_info['summary']
        }

    def run_all_tests(self) -> bool:
        """Run all test suites and return overall success."""
        print("Running All Test Suites")
        print("=" * 50)

        overall_success = True
        total_start_time = time.time()

        for suite in self.test_suites:
            result = self.run_test_suite(suite)
            self.results.append(result)

            status = "PASS" if result['success'] else "FAIL"
            print(f"{status} {result['name']} ({result['execution_time']:.1f}s) "
                  f"({result['tests_passed']}/{result['tests_total']} tests)")
            if not result['success']:
                overall_success = False
                print(f"   {result['summary']}")

        total_time = time.time() - total_start_time

        print("\n" + "=" * 50)
        print("TEST SUITE SUMMARY")
        print("=" * 50)

        passed_suites = sum(1 for r in self.results if r['success'])
        print(f"Test Suites: {passed_suites}/{len(self.results)} passed")
        print(f"Execution Time: {total_time:.1f} seconds")

        total_tests_run = sum(r['tests_total'] for r in self.results)
        total_tests_passed = sum(r['tests_passed'] for r in self.results)
        print(f"Total Individual Tests: {total_tests_passed}/{total_tests_run} passed")

        if overall_success:
            print("\nALL TEST SUITES PASSED!")
        else:
            print("\nFailed suites:")
            for result in self.results:
                if not result['success']:
                    print(f"  - {result['name']} (return code: {result['return_code']})")

        print("=" * 50)
        return overall_success


def main():
    runner = TestSuiteRunner()
    sys.exit(0 if runner.run_all_tests() else 1)


if __name__ == "__main__":
    main()
