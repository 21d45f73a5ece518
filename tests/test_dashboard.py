"""
Unit tests for dashboard metrics.
"""
from salessuite.models import ClientRecord, User
from salessuite.services.dashboard import compute_admin_metrics, compute_pipeline_metrics


def client(status, value=1000, id=1):
    return ClientRecord(id=id, user_id='user_1', name=f'Client {id}', value=value,
                        status=status, last_contact='2026-10-01')


class TestPipelineMetrics:

    def test_empty_pipeline(self):
        metrics = compute_pipeline_metrics([], 50000)

        assert metrics['leadsAdded'] == 0
        assert metrics['conversionRatio'] == '0.0'
        assert metrics['targetProgress'] == '0.0'

    def test_counts_and_ratios(self):
        clients = [
            client('New Lead', id=1),
            client('Contacted', id=2),
            client('Closed - Won', 30000, id=3),
            client('Closed - Lost', id=4),
            client('Proposal Sent', id=5),
        ]

        metrics = compute_pipeline_metrics(clients, 100000)

        assert metrics['leadsAdded'] == 5
        assert metrics['callsScheduled'] == 3
        assert metrics['closedWon'] == 1
        assert metrics['conversionRatio'] == '33.3'
        assert metrics['totalWonValue'] == 30000
        assert metrics['targetProgress'] == '30.0'

    def test_zero_target(self):
        assert compute_pipeline_metrics([client('Closed - Won')], 0)['targetProgress'] == '0.0'


class TestAdminMetrics:

    def test_active_users_have_clients(self):
        users = [User(id='user_1', name='A', email='a@x.com'), User(id='user_2', name='B', email='b@x.com')]
        clients_by_user = {'user_1': [client('New Lead'), client('Contacted', id=2)], 'user_2': []}

        assert compute_admin_metrics(users, clients_by_user) == {
            'totalUsers': 2,
            'activeUsers': 1,
            'totalClients': 2,
        }
